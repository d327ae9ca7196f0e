"""Small filesystem and environment helpers."""
