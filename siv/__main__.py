# siv/__main__.py
import sys

from . import cli


def main():
    sys.exit(cli.main())


if __name__ == "__main__":
    main()
