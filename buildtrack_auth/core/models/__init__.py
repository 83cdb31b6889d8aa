"""Domain types and I/O schemas."""
