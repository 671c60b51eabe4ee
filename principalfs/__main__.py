"""Entry point for python -m principalfs."""

from principalfs.cli.main import main

if __name__ == "__main__":
    main()
