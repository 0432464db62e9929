from dotenv import load_dotenv

import os

load_dotenv()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

INITIAL_TIME_MS = int(os.getenv("INITIAL_TIME_MS", "600000"))  # 10 minutes
MIN_PLAYERS = int(os.getenv("MIN_PLAYERS", "2"))
COUNTDOWN_SECONDS = int(os.getenv("COUNTDOWN_SECONDS", "5"))
TICK_INTERVAL_MS = int(os.getenv("TICK_INTERVAL_MS", "100"))
SETTLE_DELAY_MS = int(os.getenv("SETTLE_DELAY_MS", "2000"))
MAX_NAME_LENGTH = int(os.getenv("MAX_NAME_LENGTH", "20"))
ADMIN_PLAYER_ID = int(os.getenv("ADMIN_PLAYER_ID", "1"))

CARRY_OVER_HOLDING = os.environ.get("CARRY_OVER_HOLDING", "true").lower() == "true"
