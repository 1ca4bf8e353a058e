"""Service settings, read from the environment and .env (ESCALA_ prefix)."""
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = Path(__file__).resolve().parent / "escala.db"


class Settings(BaseSettings):
    app_name: str = "Escala"
    database_url: str = f"sqlite:///{DEFAULT_DB_PATH}"
    log_level: str = "INFO"

    # Store document sync
    store_document_id: str = "schedule_store_v1"
    sync_max_retries: int = 3
    sync_retry_base_delay: float = 1.0  # seconds, doubled on every attempt

    # E-mail (Resend); no key means sends are simulated
    resend_api_key: str = ""
    email_from: str = "onboarding@resend.dev"

    bootstrap_admin_emails: List[str] = ["financeiro@ismsaude.com"]
    cors_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(env_prefix="ESCALA_", env_file=".env", extra="ignore")


settings = Settings()
