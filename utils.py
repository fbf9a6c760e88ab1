import logging
import re
from typing import Optional, Tuple

from rapidfuzz.distance import Levenshtein

import config
from schema import NAG_SYMBOLS

CASTLING_RE = re.compile(r"O-O(-O)?[+#]?")
SAN_RE = re.compile(r"[KQRBN]?[a-h]?[1-8]?x?[a-h][1-8](=[QRBN])?[+#]?")

_LONG_CASTLE_RE = re.compile(r"[0o]-[0o]-[0o]", re.IGNORECASE)
_SHORT_CASTLE_RE = re.compile(r"[0o]-[0o]", re.IGNORECASE)
# A lowercase "b" is also a file letter; these shapes are b-pawn moves
_B_PAWN_RE = re.compile(r"b(x[a-h])?[1-8]")

# Longest first so "!!" is not read as "!"
_GLYPHS = sorted(NAG_SYMBOLS, key=len, reverse=True)


def setup_logging() -> logging.Logger:
    """Configure the root logger from LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    return logging.getLogger("scoresheet")


def normalize_move(text: str) -> str:
    """Undo the usual OCR glitches in a single move.

    Strips internal whitespace, reads digit-zero castling as letter O and
    upper-cases a leading lowercase piece letter. Pawn moves are left alone.
    """
    if not text:
        return ""

    move = re.sub(r"\s+", "", text)
    move = _LONG_CASTLE_RE.sub("O-O-O", move)
    move = _SHORT_CASTLE_RE.sub("O-O", move)

    if move and move[0] in "kqrn":
        move = move[0].upper() + move[1:]
    elif move.startswith("b") and not _B_PAWN_RE.match(move):
        move = "B" + move[1:]

    return move


def is_move_like(text: str) -> bool:
    return bool(CASTLING_RE.fullmatch(text) or SAN_RE.fullmatch(text))


def split_annotation(text: str) -> Tuple[str, Optional[str]]:
    """Split a trailing annotation glyph ("e4!?" -> ("e4", "!?"))."""
    for glyph in _GLYPHS:
        if len(text) > len(glyph) and text.endswith(glyph):
            return text[: -len(glyph)], glyph
    return text, None


def similarity(a: str, b: str) -> float:
    """1 - Levenshtein distance / length of the longer string."""
    return Levenshtein.normalized_similarity(a, b)
