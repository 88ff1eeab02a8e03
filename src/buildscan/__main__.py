"""Allow running as ``python -m buildscan``."""

from buildscan.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
