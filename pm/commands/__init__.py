"""pm commands, one module per operation."""
