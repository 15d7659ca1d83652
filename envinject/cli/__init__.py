"""Command-line interface for envinject."""
