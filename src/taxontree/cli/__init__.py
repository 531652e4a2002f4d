"""Command-line interface for taxontree."""
