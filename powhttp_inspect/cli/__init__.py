"""Command-line interface for powhttp-inspect."""
