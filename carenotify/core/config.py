import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "CareNotify - Notification & Reminder Engine"
    API_V1_STR: str = "/api/v1"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Database
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "postgres")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "carenotify_db")
    DATABASE_URL: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    # Reminders
    CLINIC_TIMEZONE: str = "UTC"
    REMINDER_SWEEP_MINUTES: int = 1

    # Vitals: pulse/temperature/glucose/oxygen rules stay off unless enabled
    VITALS_EXTENDED_ALERTS: bool = False

    # Users notified when a prescription needs processing
    PHARMACIST_USER_IDS: List[int] = []

    # Resend (Email Service)
    RESEND_API_KEY: Optional[str] = None
    RESEND_FROM_EMAIL: Optional[str] = None
    RESEND_FROM_NAME: Optional[str] = "CareNotify"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    model_config = SettingsConfigDict(env_file=os.path.join(os.path.dirname(__file__), "..", "..", ".env"), case_sensitive=True, extra="ignore")

    def __init__(self, **data):
        super().__init__(**data)
        if not self.DATABASE_URL:
             self.DATABASE_URL = f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}/{self.POSTGRES_DB}"

settings = Settings()
