"""Entry point for the principalfs CLI when run as python -m principalfs.cli."""

if __name__ == "__main__":
    from principalfs.cli.main import main

    main()
