"""Image I/O, export and logging helpers."""
