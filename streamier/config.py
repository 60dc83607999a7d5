import os
from pathlib import Path
from dotenv import load_dotenv
load_dotenv()  # reads .env in the project root

class Settings:
    DATA_DIR = Path(os.getenv("DATA_DIR", "./data")).expanduser().resolve()
    DATA_DIR.mkdir(parents=True, exist_ok=True)

    WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
    WEB_PORT = int(os.getenv("WEB_PORT", "8000"))
    GRAPHIQL = os.getenv("GRAPHIQL", "1") == "1"

    AUTH_DB_URL = os.getenv(
        "AUTH_DB_URL", f"sqlite:///{DATA_DIR / 'accounts.sqlite3'}"
    )
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "streamier_session")

    # ------------------------------------------------------------------
    # Credentials -------------------------------------------------------

    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
    MIN_PASSWORD_SCORE = int(os.getenv("MIN_PASSWORD_SCORE", "3"))
    TOTP_VALID_WINDOW = int(os.getenv("TOTP_VALID_WINDOW", "1"))

    # ------------------------------------------------------------------
    # Identifiers and sessions -----------------------------------------

    USER_ID_LENGTH = int(os.getenv("USER_ID_LENGTH", "8"))
    SESSION_ID_LENGTH = int(os.getenv("SESSION_ID_LENGTH", "128"))
    ID_GENERATION_ATTEMPTS = int(os.getenv("ID_GENERATION_ATTEMPTS", "5"))
    MAX_SESSIONS_PER_USER = int(os.getenv("MAX_SESSIONS_PER_USER", "5"))
    MIN_SESSION_LIFETIME_SECONDS = int(
        os.getenv("MIN_SESSION_LIFETIME_SECONDS", "3600")
    )
    MAX_SESSION_LIFETIME_DAYS = int(os.getenv("MAX_SESSION_LIFETIME_DAYS", "365"))

    def resolve_data_path(self, path: str | os.PathLike[str]) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.DATA_DIR / candidate
        return candidate.expanduser().resolve()

settings = Settings()
