import os
import threading
from dotenv import load_dotenv

load_dotenv()

def _as_bool(value: str) -> bool:
    return value.lower() in ["true", "1", "yes", "on"]

class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.reload()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

    def reload(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE","development")
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL","INFO").upper()
        self.DATABASE_URL = self._database_url()

        # Concurrency and progress behaviour
        self.CONFLICT_RETRY_ATTEMPTS = max(1, int(os.environ.get("CONFLICT_RETRY_ATTEMPTS", "3")))
        self.AUTO_ENROLL_ON_COMPLETION = _as_bool(os.environ.get("AUTO_ENROLL_ON_COMPLETION", "true"))

        # External collaborators
        self.IDENTITY_HEADER = os.environ.get("IDENTITY_HEADER", "X-User-Id")
        self.PAYMENT_WEBHOOK_SECRET = os.environ.get("PAYMENT_WEBHOOK_SECRET") or None
        self.CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]

    @staticmethod
    def _database_url() -> str:
        url = os.environ.get("DATABASE_URL")
        if url:
            return url

        postgres_url = os.environ.get("POSTGRES_URL")
        postgres_user = os.environ.get("POSTGRES_USER")
        postgres_password = os.environ.get("POSTGRES_PASSWORD")
        postgres_db = os.environ.get("POSTGRES_DB")

        if postgres_url and postgres_user and postgres_password and postgres_db:
            return f"postgresql://{postgres_user}:{postgres_password}@{postgres_url}/{postgres_db}"

        return "sqlite:///./academy.db"

    @property
    def is_production(self) -> bool:
        return self.DEBUG_MODE == "production"

settings = BackendSettings()
