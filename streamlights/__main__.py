"""
Entry point for running streamlights as a module: python -m streamlights
"""

from streamlights.cli.commands import app

if __name__ == "__main__":
    app()
