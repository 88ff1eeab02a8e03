"""Domain models and pure transformations."""
