"""Core models, constants and exceptions."""
