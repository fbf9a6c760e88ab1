import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(override=True)

# Application Config
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8000))
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", "output"))

# Reconstruction
DEFAULT_CONFIDENCE = 0.8
ABSENT_CONFIDENCE = 1.0
LOW_CONFIDENCE_THRESHOLD = float(os.getenv("LOW_CONFIDENCE_THRESHOLD", 0.7))

# Validation
SUGGESTION_LIMIT = int(os.getenv("SUGGESTION_LIMIT", 3))
