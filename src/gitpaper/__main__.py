"""Allow running as ``python -m gitpaper``."""

from gitpaper.cli.app import main

if __name__ == "__main__":
    main(prog_name="gitpaper")
