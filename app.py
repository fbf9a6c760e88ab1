import logging

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Modular Imports
import config
import services
from reconstruction import stitch_pages
from schema import (
    MoveRequest,
    OCRResponse,
    ParsedScoresheet,
    ParseRequest,
    PositionRequest,
    PositionResponse,
    StitchRequest,
    ValidationRequest,
    ValidationResponse,
)
from utils import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI
app = FastAPI(
    title="Scoresheet Reader API",
    description="Rebuilds handwritten scoresheet transcripts into moves and checks them against the rules.",
    version="1.0.0"
)

# ── Middleware ───────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Endpoints ────────────────────────────────────────────────────────────

@app.get("/health")
def health_check():
    """Health check endpoint to verify service status."""
    return {"status": "healthy"}


@app.post("/api/parse", response_model=OCRResponse)
def parse_page(request: ParseRequest):
    """
    1. Receive recognized text (and any metadata the recognizer found)
    2. Reconstruct the page's moves
    3. Return moves + rows needing review
    """
    try:
        return services.build_ocr_response(request.raw_text, request.metadata)
    except Exception as e:
        logger.error("Page parsing failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/stitch", response_model=ParsedScoresheet)
def stitch(request: StitchRequest):
    """Merge per-page results into a single game."""
    return stitch_pages(request.pages)


@app.post("/api/validate", response_model=ValidationResponse)
def validate_game(request: ValidationRequest):
    """
    1. Receive a flat White/Black move list
    2. Replay it against the rules until the first failure
    3. Return verdict, diagnosis and final FEN
    """
    try:
        return services.validate_moves(request.moves)
    except Exception as e:
        logger.error("Validation failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/position", response_model=PositionResponse)
def position(request: PositionRequest):
    fen = services.board_position(request.moves)
    return {"fen": fen, "legal_moves": services.legal_moves_from(fen)}


@app.post("/api/move")
def play_move(request: MoveRequest):
    fen = services.make_move(request.fen, request.move)
    if fen is None:
        raise HTTPException(status_code=400, detail=f"Move {request.move!r} cannot be played from this position")
    return {"fen": fen}


if __name__ == "__main__":
    logger.info("Starting Scoresheet Reader API on port %d...", config.PORT)
    uvicorn.run("app:app", host="0.0.0.0", port=config.PORT, reload=True)
