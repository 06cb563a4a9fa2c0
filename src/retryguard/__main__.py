"""Module entrypoint for `python -m retryguard`."""

from retryguard.cli import run

if __name__ == "__main__":
    raise SystemExit(run())
