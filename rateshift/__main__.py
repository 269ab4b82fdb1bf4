# rateshift/__main__.py

from rateshift.cli.main import cli

if __name__ == "__main__":
    cli()
