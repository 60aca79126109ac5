from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from logosdeck.config import configure_logging
from logosdeck.models import Deck
from logosdeck.pipeline import RENDERERS, export_deck
from logosdeck.templates import TEMPLATES, template_deck
from logosdeck.theme import available_themes


def _load_deck(args: argparse.Namespace) -> Deck:
    if args.template:
        return template_deck(args.template)
    data = json.loads(Path(args.deck).read_text(encoding="utf-8"))
    return Deck.model_validate(data)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render a deck JSON document to PPTX and/or PDF")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("deck", nargs="?", help="Path to a deck JSON file")
    source.add_argument("--template", choices=sorted(TEMPLATES),
                        help="Render a built-in starter deck instead of a file")
    parser.add_argument("--format", dest="formats", nargs="+", default=["pptx", "pdf"],
                        choices=sorted(RENDERERS), help="Output formats (default: pptx pdf)")
    parser.add_argument("--theme", type=str, default=None,
                        help=f"Theme id, overrides the deck's themeId ({', '.join(available_themes())})")
    parser.add_argument("--out", type=str, default=None,
                        help="Output directory (default: OUTPUT_DIR)")
    args = parser.parse_args()

    configure_logging()

    try:
        deck = _load_deck(args)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"Invalid deck: {e}", file=sys.stderr)
        sys.exit(2)

    result = export_deck(deck, formats=args.formats, theme=args.theme, output_dir=args.out)
    for path in result.paths.values():
        print(path)
    for status in result.degraded_slides:
        print(f"warning: slide {status.slide_id}: {status.error}", file=sys.stderr)
    for outcome in result.missing_assets:
        print(f"warning: image {outcome.ref}: {outcome.condition}", file=sys.stderr)


if __name__ == "__main__":
    main()
