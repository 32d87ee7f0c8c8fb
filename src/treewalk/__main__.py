"""Allow ``python -m treewalk``."""

from treewalk.cli import main

if __name__ == "__main__":
    main()
