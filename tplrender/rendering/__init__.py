"""Template compilation, registry and response rendering."""
