"""Bundled templates."""
