"""Module entry point for `python -m dynamo_load_tester`."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
