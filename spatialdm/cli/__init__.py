"""Command-line interface for the spatial narration engine."""
