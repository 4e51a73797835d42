"""Entry point for running ptk as a module: python -m ptk"""

from ptk.cli.commands import app

if __name__ == "__main__":
    app()
