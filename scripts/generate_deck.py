"""Generate a PPTX deck with one slide per selected spreadsheet row.

Usage:
    python generate_deck.py --config deck.json --data people.csv
    python generate_deck.py --config deck.json --list-placeholders
"""

from __future__ import annotations

from slidemerge import run_cli


def main() -> None:
    run_cli()


if __name__ == "__main__":
    main()
