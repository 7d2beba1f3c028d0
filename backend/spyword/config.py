import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Socket.IO
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Rooms
    MAX_CAPACITY = int(os.environ.get("MAX_CAPACITY", "20"))
    MAX_NAME_LENGTH = int(os.environ.get("MAX_NAME_LENGTH", "16"))
    ROOM_ID_LENGTH = int(os.environ.get("ROOM_ID_LENGTH", "6"))

    # Words
    MAX_WORDS_PER_PLAYER = int(os.environ.get("MAX_WORDS_PER_PLAYER", "10"))
    MAX_WORD_LENGTH = int(os.environ.get("MAX_WORD_LENGTH", "40"))

    # Game timing
    COUNTDOWN_FROM = int(os.environ.get("COUNTDOWN_FROM", "5"))
    COUNTDOWN_TICK_SEC = float(os.environ.get("COUNTDOWN_TICK_SEC", "1"))
    DISCUSSION_SEC = float(os.environ.get("DISCUSSION_SEC", "30"))
