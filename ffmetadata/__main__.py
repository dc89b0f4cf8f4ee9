"""Module entrypoint for running ffmetadata as ``python -m ffmetadata``."""

from __future__ import annotations

from ffmetadata.cli import main


if __name__ == "__main__":
    main()
