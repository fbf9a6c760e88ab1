from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

import config

# Numeric Annotation Glyphs as written on the sheet -> PGN NAG code
NAG_SYMBOLS = {
    "!": "$1",   # Good move
    "?": "$2",   # Mistake
    "!!": "$3",  # Brilliant move
    "??": "$4",  # Blunder
    "!?": "$5",  # Interesting move
    "?!": "$6",  # Dubious move
}

GameResult = Literal["1-0", "0-1", "1/2-1/2", "*"]
ErrorKind = Literal["illegal", "ambiguous", "invalid_notation"]
ColumnAlignment = Literal["paired", "sequential"]

# --- Core Domain Models ---

class MoveConfidence(BaseModel):
    model_config = ConfigDict(frozen=True)

    white: float = Field(config.DEFAULT_CONFIDENCE, ge=0.0, le=1.0)
    black: float = Field(config.DEFAULT_CONFIDENCE, ge=0.0, le=1.0)


class Move(BaseModel):
    """One numbered White/Black pair as read from the sheet."""
    model_config = ConfigDict(frozen=True)

    move_number: int = Field(..., ge=1, description="The move number (e.g., 1, 2, ...)")
    white: str = Field(..., min_length=1, description="White's move in SAN-like text.")
    black: str = Field("", description="Black's move, or empty if not played/recognized.")
    confidence: MoveConfidence
    white_nag: Optional[str] = None
    black_nag: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _default_confidence(cls, data):
        # An absent ply has nothing to doubt
        if isinstance(data, dict) and data.get("confidence") is None:
            data = dict(data)
            data["confidence"] = {
                "white": config.DEFAULT_CONFIDENCE,
                "black": config.DEFAULT_CONFIDENCE if data.get("black") else config.ABSENT_CONFIDENCE,
            }
        return data


class ParsedScoresheet(BaseModel):
    model_config = ConfigDict(frozen=True)

    moves: List[Move] = Field(default_factory=list)
    white_player: Optional[str] = None
    black_player: Optional[str] = None
    result: Optional[GameResult] = None


class GameMetadata(BaseModel):
    """Header data the OCR capability may hand over already recognized."""
    model_config = ConfigDict(frozen=True)

    white_player: Optional[str] = None
    black_player: Optional[str] = None
    result: Optional[GameResult] = None
    event_name: Optional[str] = None
    date_played: Optional[str] = None


class OCRResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    moves: List[Move]
    metadata: GameMetadata
    raw_text: str
    low_confidence_indices: List[int]  # Indices of moves needing review
    column_alignment: ColumnAlignment


class ValidationError(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    move: str
    error: ErrorKind
    suggestions: List[str] = Field(default_factory=list)
    legal_moves: List[str] = Field(default_factory=list)


class ValidationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: List[ValidationError] = Field(default_factory=list)
    final_fen: str

# --- API Request/Response Models ---

class ParseRequest(BaseModel):
    raw_text: str
    metadata: Optional[GameMetadata] = None


class StitchRequest(BaseModel):
    pages: List[ParsedScoresheet]


class ValidationRequest(BaseModel):
    moves: List[str]


class PositionRequest(BaseModel):
    moves: List[str] = Field(default_factory=list)


class PositionResponse(BaseModel):
    fen: str
    legal_moves: List[str]


class MoveRequest(BaseModel):
    fen: str
    move: str
