"""Entry point for ``python -m dbdoctor``."""
from dbdoctor.cli import cli

if __name__ == "__main__":
    cli(obj={})
