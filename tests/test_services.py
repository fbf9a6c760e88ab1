"""Tests for move validation, disambiguation and the position helpers."""

import chess
import pytest

import services
from oracle import MoveRejected, PythonChessOracle, RulesOracle
from schema import Move, MoveConfidence


RUY_LOPEZ = ["e4", "e5", "Nf3", "Nc6", "Bb5", "a6"]


def fen_after(moves):
    board = chess.Board()
    for san in moves:
        board.push_san(san)
    return board.fen()


class FakeOracle(RulesOracle):
    """Rejects everything; offers a fixed list of legal moves."""

    def __init__(self, legal, kind="illegal"):
        self.legal = legal
        self.kind = kind

    def initial_state(self):
        return "start"

    def apply(self, state, move):
        raise MoveRejected(move, self.kind)

    def legal_moves(self, state):
        return list(self.legal)

    def to_board_notation(self, state):
        return state

    def from_board_notation(self, notation):
        return notation


class TestValidateMoves:

    def test_valid_game(self):
        result = services.validate_moves(RUY_LOPEZ)
        assert result.valid
        assert result.errors == []
        assert result.final_fen == fen_after(RUY_LOPEZ)

    def test_empty_list(self):
        result = services.validate_moves([])
        assert result.valid
        assert result.final_fen == chess.STARTING_FEN

    def test_fail_fast_on_illegal_move(self):
        result = services.validate_moves(RUY_LOPEZ + ["Bxc7", "Nf6", "O-O"])
        assert not result.valid
        assert len(result.errors) == 1

        error = result.errors[0]
        assert error.index == 6
        assert error.move == "Bxc7"
        assert error.error == "illegal"
        assert result.final_fen == fen_after(RUY_LOPEZ)

    def test_illegal_move_suggestions(self):
        error = services.validate_moves(RUY_LOPEZ + ["Bxc7"]).errors[0]
        # Bxc6 is one edit away; Bxa6 and Bc4 tie, in python-chess enumeration order
        assert error.suggestions == ["Bxc6", "Bxa6", "Bc4"]
        assert "Bxd7+" not in error.legal_moves
        assert set(error.suggestions) <= set(error.legal_moves)
        assert "O-O" in error.legal_moves

    def test_first_move_fails(self):
        result = services.validate_moves(["e5", "e4"])
        assert result.errors[0].index == 0
        assert result.errors[0].error == "illegal"
        assert result.final_fen == chess.STARTING_FEN

    def test_invalid_notation(self):
        result = services.validate_moves(["e4", "zz9"])
        error = result.errors[0]
        assert error.index == 1
        assert error.error == "invalid_notation"
        assert len(error.suggestions) == 3
        assert result.final_fen == fen_after(["e4"])

    def test_ambiguous_knight_move(self):
        result = services.validate_moves(["d4", "d5", "Nf3", "Nf6", "Nd2"])
        error = result.errors[0]
        assert error.index == 4
        assert error.error == "ambiguous"
        assert sorted(error.suggestions) == ["Nbd2", "Nfd2"]

    def test_ocr_glitches_normalized(self):
        result = services.validate_moves(["e4", "e5", "nf3", "Nc6", "Bc4", "Bc5", "0-0"])
        assert result.valid

    def test_error_reports_text_as_received(self):
        result = services.validate_moves(["e4", "e5", "k e3"])
        assert result.errors[0].move == "k e3"


class TestDisambiguationWithFakeOracle:

    def test_two_knights_same_square(self):
        oracle = FakeOracle(["Nb1c3", "Nd1c3", "e4", "Nf3"])
        result = services.validate_moves(["Nc3"], oracle)
        error = result.errors[0]
        assert error.error == "ambiguous"
        assert error.suggestions == ["Nb1c3", "Nd1c3"]
        assert error.legal_moves == ["Nb1c3", "Nd1c3", "e4", "Nf3"]
        assert result.final_fen == "start"

    def test_single_candidate_is_not_ambiguous(self):
        oracle = FakeOracle(["Nb1c3", "e4"])
        error = services.validate_moves(["Nc3"], oracle).errors[0]
        assert error.error == "illegal"

    def test_ties_keep_enumeration_order(self):
        oracle = FakeOracle(["a3", "b3", "c3", "d3"])
        error = services.validate_moves(["x3"], oracle).errors[0]
        assert error.suggestions == ["a3", "b3", "c3"]

    def test_ranked_by_similarity(self):
        oracle = FakeOracle(["a3", "Qf3", "Nf3", "Nf6"], kind="invalid_notation")
        error = services.validate_moves(["Nf7"], oracle).errors[0]
        assert error.error == "invalid_notation"
        assert error.suggestions == ["Nf3", "Nf6", "Qf3"]

    def test_fewer_legal_moves_than_limit(self):
        oracle = FakeOracle(["Kh1"])
        error = services.validate_moves(["Kg1"], oracle).errors[0]
        assert error.suggestions == ["Kh1"]


class TestAmbiguousCandidates:

    def test_no_destination(self):
        assert services.ambiguous_candidates("O-O", ["O-O", "O-O-O"]) == []

    def test_pawn_file_as_leading_character(self):
        legal = ["exd5", "cxd5", "e5"]
        assert services.ambiguous_candidates("xd5", legal) == []
        assert services.ambiguous_candidates("ed5", legal) == ["exd5"]


class TestFlattenAndConfidence:

    def test_flatten_skips_empty_black(self):
        moves = [
            Move(move_number=1, white="e4", black="e5"),
            Move(move_number=2, white="Nf3"),
        ]
        assert services.flatten_moves(moves) == ["e4", "e5", "Nf3"]

    def test_low_confidence_indices(self):
        moves = [
            Move(move_number=1, white="e4", black="e5"),
            Move(move_number=2, white="Nf3", black="Nc6", confidence=MoveConfidence(white=0.9, black=0.5)),
            Move(move_number=3, white="Bb5", confidence=MoveConfidence(white=0.6, black=1.0)),
        ]
        assert services.low_confidence_indices(moves) == [1, 2]

    def test_build_ocr_response(self):
        response = services.build_ocr_response("White: Alice\n1. e4 e5\n2. Nf3 Nc6\n*")
        assert len(response.moves) == 2
        assert response.metadata.white_player == "Alice"
        assert response.metadata.result == "*"
        assert response.low_confidence_indices == []
        assert response.column_alignment == "paired"


class TestPositionHelpers:

    def test_board_position_stops_at_failure(self):
        assert services.board_position(["e4", "zz", "d5"]) == fen_after(["e4"])

    def test_legal_moves_from(self):
        assert len(services.legal_moves_from(chess.STARTING_FEN)) == 20
        assert services.legal_moves_from("not a fen") == []

    def test_make_move(self):
        assert services.make_move(chess.STARTING_FEN, "e4") == fen_after(["e4"])
        assert services.make_move(chess.STARTING_FEN, "e5") is None
        assert services.make_move("not a fen", "e4") is None


class TestPythonChessOracle:

    def test_apply_does_not_mutate(self):
        oracle = PythonChessOracle()
        start = oracle.initial_state()
        after = oracle.apply(start, "e4")
        assert oracle.to_board_notation(start) == chess.STARTING_FEN
        assert oracle.to_board_notation(after) == fen_after(["e4"])

    @pytest.mark.parametrize("move, kind", [
        ("e5", "illegal"),
        ("zz9", "invalid_notation"),
        ("--", "invalid_notation"),
    ])
    def test_rejections(self, move, kind):
        oracle = PythonChessOracle()
        with pytest.raises(MoveRejected) as excinfo:
            oracle.apply(oracle.initial_state(), move)
        assert excinfo.value.kind == kind
