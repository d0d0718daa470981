"""CLI commands for dbcatalog."""
