"""Command-line interface for streamlights."""
