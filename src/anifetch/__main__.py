"""
anifetch Package Main Entry Point

Runs the CLI when the package is executed with ``python -m anifetch``.
"""

from anifetch.cli.typer_app import app

if __name__ == "__main__":
    app()
