"""Package entry for local src modules."""
