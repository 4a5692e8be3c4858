"""Allow ``python -m xamlpatch``."""

from xamlpatch.main import main

if __name__ == "__main__":
    main()
