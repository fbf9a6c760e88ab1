"""
Scoresheet Transcript → Validated Moves
=======================================
Takes the recognized text of one or more scoresheet pages, rebuilds the
numbered move list of each page, stitches the pages into one game and
replays it against the rules, reporting the first move that fails along
with suggested corrections.

Usage:
    python main.py page1.txt
    python main.py page1.txt page2.txt --output game.json
    python main.py page1.txt --white "Magnus" --black "Hikaru"
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import config
import services
from reconstruction import detect_column_alignment, parse_scoresheet, stitch_pages
from schema import GameMetadata, ParsedScoresheet, ValidationResponse
from utils import setup_logging

logger = logging.getLogger(__name__)


# ── Report ───────────────────────────────────────────────────────────────────

def print_report(game: ParsedScoresheet, verdict: ValidationResponse) -> None:
    """Print a human-readable validation report to stdout."""
    failed_at = verdict.errors[0].index if verdict.errors else None
    ply = 0

    for move in game.moves:
        for color, san in (("white", move.white), ("black", move.black)):
            if not san:
                continue
            if failed_at is None or ply < failed_at:
                mark = "✓"
            elif ply == failed_at:
                mark = "✗"
            else:
                mark = "·"
            print(f"  {mark} {move.move_number}. {color}: {san}")
            ply += 1

    print(f"\n── Summary ──")
    print(f"  Rows reconstructed: {len(game.moves)}")
    print(f"  Plies:              {ply}")
    print(f"  Valid:              {verdict.valid}")
    print(f"  Final FEN:          {verdict.final_fen}")

    for error in verdict.errors:
        print(f"\n── Flagged Move ──")
        print(f"  #{error.index} {error.move!r}: {error.error}")
        if error.suggestions:
            print(f"  Did you mean: {', '.join(error.suggestions)}")


# ── CLI Entry Point ──────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Scoresheet transcript → validated moves",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  python main.py page1.txt
  python main.py page1.txt page2.txt --output game.json
  python main.py page1.txt --white "Magnus" --black "Hikaru"
        """,
    )
    parser.add_argument(
        "pages",
        nargs="+",
        help="Text files holding the recognized text of each scoresheet page",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output JSON file path (default: output/<first_page_stem>.json)",
    )
    parser.add_argument("--white", "-w", default=None, help="White player name")
    parser.add_argument("--black", "-b", default=None, help="Black player name")

    args = parser.parse_args(argv)
    setup_logging()

    page_paths = [Path(p) for p in args.pages]
    for path in page_paths:
        if not path.exists():
            logger.error("Page not found: %s", path)
            return 1

    output_path = Path(args.output) if args.output else config.OUTPUT_DIR / f"{page_paths[0].stem}.json"
    metadata = GameMetadata(white_player=args.white, black_player=args.black)

    # ── Run Pipeline ──
    print("=" * 60)
    print("  Scoresheet Transcript → Validated Moves")
    print("=" * 60)

    print(f"\n[1/3] Reconstructing {len(page_paths)} page(s)...")
    pages = []
    for path in page_paths:
        raw_text = path.read_text(encoding="utf-8")
        page = parse_scoresheet(raw_text, metadata)
        print(f"       {path.name}: {len(page.moves)} rows ({detect_column_alignment(raw_text)} layout)")
        pages.append(page)

    print("\n[2/3] Stitching pages...")
    game = stitch_pages(pages)
    if not game.moves:
        logger.error("No moves could be reconstructed")
        return 1

    print("\n[3/3] Validating against the rules...\n")
    verdict = services.validate_moves(services.flatten_moves(game.moves))
    print_report(game, verdict)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps({"game": game.model_dump(), "validation": verdict.model_dump()}, indent=2),
        encoding="utf-8",
    )
    print(f"\n  Saved to {output_path}")

    return 0 if verdict.valid else 2


if __name__ == "__main__":
    sys.exit(main())
