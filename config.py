import os
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        csrf_secret: str,
        assistant_api_key: Optional[str],
        assistant_base_url: str,
        assistant_model: str,
        assistant_timeout_secs: float,
        port: int,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.csrf_secret = csrf_secret
        self.assistant_api_key = assistant_api_key
        self.assistant_base_url = assistant_base_url
        self.assistant_model = assistant_model
        self.assistant_timeout_secs = assistant_timeout_secs
        self.port = port


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance.db"
    database_url = os.getenv("FINANCE_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINANCE_TIMEZONE", "Asia/Kolkata")
    csrf_secret = os.getenv(
        "FINANCE_CSRF_SECRET",
        "3f9a1c0e6d2b47a8b5e19c7d04f2a6e8c1b3d5f7a9e0c2b4d6f8a1c3e5b7d9f0",
    )
    assistant_api_key = os.getenv("FINANCE_ASSISTANT_API_KEY") or os.getenv(
        "GROQ_API_KEY"
    )
    assistant_base_url = os.getenv(
        "FINANCE_ASSISTANT_BASE_URL", "https://api.groq.com/openai/v1"
    )
    assistant_model = os.getenv("FINANCE_ASSISTANT_MODEL", "llama-3.3-70b-versatile")
    assistant_timeout_secs = float(os.getenv("FINANCE_ASSISTANT_TIMEOUT_SECS", "30"))
    port = int(os.getenv("PORT", "5000"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        csrf_secret=csrf_secret,
        assistant_api_key=assistant_api_key or None,
        assistant_base_url=assistant_base_url,
        assistant_model=assistant_model,
        assistant_timeout_secs=assistant_timeout_secs,
        port=port,
    )
