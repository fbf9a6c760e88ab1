"""
Scoresheet reconstruction
=========================
Turns one page of raw OCR text into numbered move pairs, and stitches
several pages back into one game.

Two strategies run on every page. The token-stream reconstructor walks the
classified tokens with a small state machine and is preferred; the
line-based reconstructor reads "N. white black" per line and is used only
when the token stream produced nothing.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import config
from schema import ColumnAlignment, GameMetadata, Move, ParsedScoresheet
from tokenizer import MoveLike, MoveNumber, MoveNumberWithMove, Noise, Token, tokenize
from utils import normalize_move

logger = logging.getLogger(__name__)

_WHITE_NAME_RE = re.compile(r"\b(?:white|w)\s*:\s*([a-zA-Z\s]+)", re.IGNORECASE)
_BLACK_NAME_RE = re.compile(r"\b(?:black|b)\s*:\s*([a-zA-Z\s]+)", re.IGNORECASE)
_RESULT_RE = re.compile(r"(1-0|0-1|1/2-1/2|\*)")

_SAN_CHARS = r"[a-zA-Z0-9\-+#=]"
_LINE_MOVE_RE = re.compile(rf"(\d+)[.\s|]+({_SAN_CHARS}+)[\s|]*({_SAN_CHARS}*)")

_PAIRED_RE = re.compile(r"\d+[.\s]+[a-zA-Z0-9]+\s+[a-zA-Z0-9]+")
_SEQUENTIAL_RE = re.compile(r"\d+[.\s]+[a-zA-Z0-9]+$")


# ── Page parsing ─────────────────────────────────────────────────────────────

def parse_scoresheet(raw_text: str, metadata: Optional[GameMetadata] = None) -> ParsedScoresheet:
    """
    Parse one page of OCR text into a ParsedScoresheet.
    Never raises: unreadable text yields an empty move list.
    Metadata recognized upstream wins over what the regexes find here.
    """
    lines = [line.strip() for line in raw_text.split("\n")]
    lines = [line for line in lines if line]

    white_player, black_player, cleaned_lines = extract_player_names(lines)

    moves = reconstruct_from_tokens(tokenize("\n".join(cleaned_lines)))
    if not moves:
        logger.debug("Token stream yielded no moves, falling back to line matching")
        moves = reconstruct_from_lines(cleaned_lines)

    result = extract_result(raw_text)

    if metadata is not None:
        white_player = metadata.white_player or white_player
        black_player = metadata.black_player or black_player
        result = metadata.result or result

    return ParsedScoresheet(
        moves=moves,
        white_player=white_player,
        black_player=black_player,
        result=result,
    )


def extract_player_names(lines: List[str]) -> Tuple[Optional[str], Optional[str], List[str]]:
    """Pull "White: ..." / "Black: ..." lines out of the page."""
    white_player = None
    black_player = None
    cleaned_lines = []

    for line in lines:
        white_match = _WHITE_NAME_RE.search(line)
        black_match = _BLACK_NAME_RE.search(line)

        if white_match:
            white_player = white_match.group(1).strip()
        elif black_match:
            black_player = black_match.group(1).strip()
        else:
            cleaned_lines.append(line)

    return white_player, black_player, cleaned_lines


def extract_result(raw_text: str) -> Optional[str]:
    match = _RESULT_RE.search(raw_text)
    return match.group(1) if match else None


# ── Token-stream reconstruction ──────────────────────────────────────────────

@dataclass
class _PendingMove:
    move_number: int
    white: str
    white_nag: Optional[str] = None
    black: str = ""
    black_nag: Optional[str] = None

    def to_move(self) -> Move:
        return Move(
            move_number=self.move_number,
            white=self.white,
            black=self.black,
            white_nag=self.white_nag,
            black_nag=self.black_nag,
        )


@dataclass
class _ReconstructionState:
    current_move_number: Optional[int] = None
    pending: Optional[_PendingMove] = None
    moves: List[Move] = field(default_factory=list)

    def flush(self):
        if self.pending is not None:
            self.moves.append(self.pending.to_move())
            self.pending = None

    def last_emitted_number(self) -> Optional[int]:
        if self.pending is not None:
            return self.pending.move_number
        if self.moves:
            return self.moves[-1].move_number
        return None

    def rejects(self, number: int) -> bool:
        if number < 1:
            return True
        last = self.last_emitted_number()
        return last is not None and number < last

    def renumber(self, number: int):
        self.flush()
        self.current_move_number = number

    def start(self, text: str, nag: Optional[str]):
        self.pending = _PendingMove(move_number=self.current_move_number, white=text, white_nag=nag)

    def place(self, text: str, nag: Optional[str]):
        if self.current_move_number is None:
            logger.debug("Dropping unanchored move %r", text)
        elif self.pending is None:
            self.start(text, nag)
        elif not self.pending.black:
            self.pending.black = text
            self.pending.black_nag = nag
        else:
            # Unnumbered continuation: next pair
            self.flush()
            self.current_move_number += 1
            self.start(text, nag)


def reconstruct_from_tokens(tokens: Iterable[Token]) -> List[Move]:
    """Assemble classified tokens into ordered move pairs.

    A number lower than the last emitted move number is a misread digit
    rather than a new anchor: it is ignored and any move glued to it is placed
    as if unnumbered, so emitted numbering never decreases. Numbers seen before
    the first move (round, board, date) are simply replaced by the next one.
    """
    state = _ReconstructionState()

    for token in tokens:
        if isinstance(token, MoveNumberWithMove):
            if state.rejects(token.number):
                logger.debug("Ignoring out-of-sequence move number %d", token.number)
                if token.move_like:
                    state.place(token.text, token.nag)
                continue
            state.renumber(token.number)
            if token.move_like:
                state.start(token.text, token.nag)

        elif isinstance(token, MoveNumber):
            if state.rejects(token.number):
                logger.debug("Ignoring out-of-sequence move number %d", token.number)
                continue
            state.renumber(token.number)

        elif isinstance(token, Noise):
            logger.debug("Discarding noise token %r", token.text)

        elif isinstance(token, MoveLike):
            state.place(token.text, token.nag)

        else:
            raise TypeError(f"Unknown token type: {type(token).__name__}")

    state.flush()
    return state.moves


# ── Line-based reconstruction (fallback) ─────────────────────────────────────

def reconstruct_from_lines(lines: Iterable[str]) -> List[Move]:
    """Read one "N. white black" pair per line."""
    moves: List[Move] = []

    for line in lines:
        match = _LINE_MOVE_RE.search(line)
        if not match:
            continue

        move_number = int(match.group(1))
        white = normalize_move(match.group(2))
        black = normalize_move(match.group(3))

        if not white or move_number < 1:
            continue
        if moves and move_number < moves[-1].move_number:
            logger.debug("Skipping line with regressing move number: %r", line)
            continue

        # Unrecognized text is kept as-is for manual review
        moves.append(Move(
            move_number=move_number,
            white=white,
            black=black,
            confidence={
                "white": config.DEFAULT_CONFIDENCE,
                "black": config.DEFAULT_CONFIDENCE if black else config.ABSENT_CONFIDENCE,
            },
        ))

    return moves


# ── Layout heuristic ─────────────────────────────────────────────────────────

def detect_column_alignment(raw_text: str) -> ColumnAlignment:
    """
    Guess whether the sheet pairs moves per row (W1 B1, W2 B2) or lists
    them sequentially (W1..W40, B1..B40). Advisory only.
    """
    paired_count = 0
    sequential_count = 0

    for line in raw_text.split("\n"):
        if _PAIRED_RE.search(line):
            paired_count += 1
        elif _SEQUENTIAL_RE.search(line):
            sequential_count += 1

    return "paired" if paired_count > sequential_count else "sequential"


# ── Multi-page stitching ─────────────────────────────────────────────────────

def _first_move_number(page: ParsedScoresheet) -> int:
    return page.moves[0].move_number if page.moves else 0


def stitch_pages(pages: List[ParsedScoresheet]) -> ParsedScoresheet:
    """
    Merge page results into one game, ordered by each page's first move
    number. Overlapping move ranges are concatenated as-is.
    """
    if not pages:
        return ParsedScoresheet(moves=[])

    if len(pages) == 1:
        return pages[0]

    sorted_pages = sorted(pages, key=_first_move_number)

    all_moves: List[Move] = []
    for page in sorted_pages:
        all_moves.extend(page.moves)

    first, last = sorted_pages[0], sorted_pages[-1]
    return ParsedScoresheet(
        moves=all_moves,
        white_player=first.white_player,
        black_player=first.black_player,
        result=last.result or first.result,
    )
