"""Main entry point for running textreplace as a module."""

from .cli import main

if __name__ == "__main__":
    main()
