"""Chess rules oracle.

The validator only needs four things from a rules implementation: a fresh
starting position, applying a move without touching the old position,
listing the legal moves in SAN, and rendering a position as FEN.
PythonChessOracle provides them on top of python-chess.
"""

from abc import ABC, abstractmethod
from typing import Any, List

import chess


class MoveRejected(ValueError):
    """The oracle refused a move. `kind` is illegal, ambiguous or invalid_notation."""

    def __init__(self, move: str, kind: str, reason: str = ""):
        super().__init__(reason or f"{kind} move: {move}")
        self.move = move
        self.kind = kind


class RulesOracle(ABC):

    @abstractmethod
    def initial_state(self) -> Any:
        pass

    @abstractmethod
    def apply(self, state: Any, move: str) -> Any:
        """Return the position after `move`; raise MoveRejected if it can't be played."""

    @abstractmethod
    def legal_moves(self, state: Any) -> List[str]:
        pass

    @abstractmethod
    def to_board_notation(self, state: Any) -> str:
        pass

    @abstractmethod
    def from_board_notation(self, notation: str) -> Any:
        """Build a position from FEN; raise ValueError if it is malformed."""


class PythonChessOracle(RulesOracle):

    def initial_state(self) -> chess.Board:
        return chess.Board()

    def apply(self, state: chess.Board, move: str) -> chess.Board:
        try:
            parsed = state.parse_san(move)
        except chess.AmbiguousMoveError as e:
            raise MoveRejected(move, "ambiguous", str(e)) from e
        except chess.IllegalMoveError as e:
            raise MoveRejected(move, "illegal", str(e)) from e
        except chess.InvalidMoveError as e:
            raise MoveRejected(move, "invalid_notation", str(e)) from e

        # parse_san accepts "--" as a null move
        if not parsed:
            raise MoveRejected(move, "invalid_notation", f"null move: {move}")

        board = state.copy()
        board.push(parsed)
        return board

    def legal_moves(self, state: chess.Board) -> List[str]:
        return [state.san(move) for move in state.legal_moves]

    def to_board_notation(self, state: chess.Board) -> str:
        return state.fen()

    def from_board_notation(self, notation: str) -> chess.Board:
        return chess.Board(notation)
