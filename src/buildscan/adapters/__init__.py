"""Adapters for external command-line tools."""
