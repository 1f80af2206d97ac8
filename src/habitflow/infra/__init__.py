"""Infrastructure adapters backing the domain contracts."""
