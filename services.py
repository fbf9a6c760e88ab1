import logging
import re
from typing import List, Optional

import config
from oracle import MoveRejected, PythonChessOracle, RulesOracle
from reconstruction import detect_column_alignment, parse_scoresheet
from schema import GameMetadata, Move, OCRResponse, ValidationError, ValidationResponse
from utils import normalize_move, similarity

logger = logging.getLogger(__name__)

_SQUARE_RE = re.compile(r"[a-h][1-8]")


# ── OCR Service ──────────────────────────────────────────────────────────────

def build_ocr_response(raw_text: str, metadata: Optional[GameMetadata] = None) -> OCRResponse:
    """
    Reconstruct one page of recognized text and package it for review:
    moves, merged header metadata and the rows whose confidence is low.
    """
    parsed = parse_scoresheet(raw_text, metadata)

    merged = GameMetadata(
        white_player=parsed.white_player,
        black_player=parsed.black_player,
        result=parsed.result,
        event_name=metadata.event_name if metadata else None,
        date_played=metadata.date_played if metadata else None,
    )

    return OCRResponse(
        moves=parsed.moves,
        metadata=merged,
        raw_text=raw_text,
        low_confidence_indices=low_confidence_indices(parsed.moves),
        column_alignment=detect_column_alignment(raw_text),
    )


def low_confidence_indices(moves: List[Move], threshold: float = config.LOW_CONFIDENCE_THRESHOLD) -> List[int]:
    return [
        index for index, move in enumerate(moves)
        if move.confidence.white < threshold or move.confidence.black < threshold
    ]


def flatten_moves(moves: List[Move]) -> List[str]:
    """White then Black for each row, skipping plies that were not recognized."""
    plies: List[str] = []
    for move in moves:
        for san in (move.white, move.black):
            if san:
                plies.append(san)
    return plies


# ── Validation Service ───────────────────────────────────────────────────────

def validate_moves(moves: List[str], oracle: Optional[RulesOracle] = None) -> ValidationResponse:
    """
    Replay a flat White/Black interleaved move list from the starting position.
    Stops at the first move the oracle rejects and reports it with
    suggestions; nothing after that point is checked.
    """
    oracle = oracle or PythonChessOracle()
    state = oracle.initial_state()
    errors: List[ValidationError] = []

    for index, raw in enumerate(moves):
        san = normalize_move(raw)
        try:
            state = oracle.apply(state, san)
        except MoveRejected as e:
            errors.append(_diagnose(index, raw, san, e.kind, oracle.legal_moves(state)))
            logger.info("Move %d (%r) rejected as %s", index, raw, errors[-1].error)
            break

    return ValidationResponse(
        valid=not errors,
        errors=errors,
        final_fen=oracle.to_board_notation(state),
    )


def _diagnose(index: int, raw: str, san: str, kind: str, legal_moves: List[str]) -> ValidationError:
    candidates = ambiguous_candidates(san, legal_moves)
    if len(candidates) > 1:
        return ValidationError(
            index=index,
            move=raw,
            error="ambiguous",
            suggestions=candidates,
            legal_moves=legal_moves,
        )

    return ValidationError(
        index=index,
        move=raw,
        error="invalid_notation" if kind == "invalid_notation" else "illegal",
        suggestions=find_similar_moves(san, legal_moves),
        legal_moves=legal_moves,
    )


def ambiguous_candidates(move: str, legal_moves: List[str]) -> List[str]:
    """Legal moves with the same leading character landing on the same square."""
    destination = _SQUARE_RE.search(move)
    if not destination:
        return []

    square = destination.group(0)
    return [
        legal for legal in legal_moves
        if square in legal and legal[0] == move[0]
    ]


def find_similar_moves(move: str, legal_moves: List[str], limit: int = config.SUGGESTION_LIMIT) -> List[str]:
    # sorted() is stable, so ties keep the oracle's order
    ranked = sorted(legal_moves, key=lambda legal: similarity(move, legal), reverse=True)
    return ranked[:limit]


# ── Position Helpers ─────────────────────────────────────────────────────────

def board_position(moves: List[str], oracle: Optional[RulesOracle] = None) -> str:
    """FEN after playing `moves`, stopping quietly at the first rejected one."""
    oracle = oracle or PythonChessOracle()
    state = oracle.initial_state()
    for move in moves:
        try:
            state = oracle.apply(state, normalize_move(move))
        except MoveRejected:
            break
    return oracle.to_board_notation(state)


def legal_moves_from(fen: str, oracle: Optional[RulesOracle] = None) -> List[str]:
    oracle = oracle or PythonChessOracle()
    try:
        return oracle.legal_moves(oracle.from_board_notation(fen))
    except ValueError:
        logger.debug("Invalid FEN: %r", fen)
        return []


def make_move(fen: str, move: str, oracle: Optional[RulesOracle] = None) -> Optional[str]:
    """FEN after `move`, or None if the FEN is malformed or the move rejected."""
    oracle = oracle or PythonChessOracle()
    try:
        state = oracle.apply(oracle.from_board_notation(fen), normalize_move(move))
    except ValueError:
        return None
    return oracle.to_board_notation(state)
