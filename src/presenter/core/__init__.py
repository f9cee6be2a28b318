"""Content routing, backend access, and the presentation pipeline."""
