"""Module entrypoint for `python -m lcassist`."""

from __future__ import annotations

from lcassist.client.cli import main_entry

if __name__ == "__main__":
    raise SystemExit(main_entry())
