"""Repository probes."""
