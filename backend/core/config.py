import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)

OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
OPENAI_BASE_URL = str(os.getenv("OPENAI_BASE_URL") or "https://api.openai.com/v1").strip().rstrip("/")
REALTIME_MODEL = str(os.getenv("REALTIME_MODEL") or "gpt-4o-realtime-preview-2025-06-03").strip()
TRANSCRIPTION_MODEL = str(os.getenv("TRANSCRIPTION_MODEL") or "whisper-1").strip()
CHAT_MODEL = str(os.getenv("CHAT_MODEL") or "o1-mini").strip()
IMAGE_MODEL = str(os.getenv("IMAGE_MODEL") or "gpt-4o").strip()  # needs vision input
CONSOLE_BASE_URL = str(os.getenv("CONSOLE_BASE_URL") or "http://localhost:3000").strip().rstrip("/")

COST_LIMIT_USD = float(os.getenv("COST_LIMIT_USD") or 5.0)
MAX_RESPONSES_PER_SESSION = int(os.getenv("MAX_RESPONSES_PER_SESSION") or 50)
USD_TO_INR_RATE = float(os.getenv("USD_TO_INR_RATE") or 85.0)

