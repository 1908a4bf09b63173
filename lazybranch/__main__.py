"""Module entrypoint for ``python -m lazybranch``."""

from .cli import main


if __name__ == "__main__":
    main()
