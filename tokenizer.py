"""Split raw OCR text into classified tokens.

Every token is one of:

    MoveNumber(n)                 "12." / "12)" / "12"
    MoveNumberWithMove(n, text)   "12.Nf3" - OCR glued the number to the move
    MoveLike(text)                passes the SAN-shape predicate
    Noise(text)                   anything else (names, stray marks, results)

Move text is normalized (castling zeros, piece letter case, whitespace) and
any trailing annotation glyph is split off before the SAN-shape test.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Union

from utils import is_move_like, normalize_move, split_annotation

_SPLIT_RE = re.compile(r"[|\s]+")
_NUMBER_RE = re.compile(r"(\d+)[.)]?")
_GLUED_RE = re.compile(r"(\d+)[.)]?([A-Za-z0O].+)")


@dataclass(frozen=True)
class MoveNumber:
    number: int


@dataclass(frozen=True)
class MoveNumberWithMove:
    number: int
    text: str
    nag: Optional[str] = None

    @property
    def move_like(self) -> bool:
        return is_move_like(self.text)


@dataclass(frozen=True)
class MoveLike:
    text: str
    nag: Optional[str] = None


@dataclass(frozen=True)
class Noise:
    text: str


Token = Union[MoveNumber, MoveNumberWithMove, MoveLike, Noise]


def _candidate(raw: str):
    move, nag = split_annotation(raw)
    return normalize_move(move), nag


def classify(raw: str) -> Token:
    """Classify a single whitespace/pipe-free chunk of text."""
    number = _NUMBER_RE.fullmatch(raw)
    if number:
        return MoveNumber(int(number.group(1)))

    glued = _GLUED_RE.fullmatch(raw)
    if glued:
        move, nag = _candidate(glued.group(2))
        return MoveNumberWithMove(int(glued.group(1)), move, nag)

    move, nag = _candidate(raw)
    if is_move_like(move):
        return MoveLike(move, nag)
    return Noise(raw)


def tokenize(text: str) -> List[Token]:
    return [classify(chunk) for chunk in _SPLIT_RE.split(text) if chunk]
