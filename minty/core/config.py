# minty/core/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the project root directory (where .env should be located)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra="ignore"
    )

    # App Configuration
    APP_NAME: str = "Minty API"
    DEBUG: bool = False
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database Configuration
    DATABASE_URL: str

    # JWT / Security Configuration
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080

    # CORS Configuration
    FRONTEND_URL: str = "http://localhost:3000"

    # AI assistant (OpenRouter, OpenAI-compatible chat completions)
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    LLM_PRIMARY_MODEL: str = "meta-llama/llama-3.2-3b-instruct"
    LLM_FALLBACK_MODEL: str = "deepseek/deepseek-chat-v3-0324:free"
    LLM_TIMEOUT_SECONDS: float = 60.0

    # Notifications
    NOTIFICATION_MIN_INTERVAL_SECONDS: float = 2.0
    BUDGET_ALERT_PERCENT: float = 80.0

    # Periodic reminder / report checks
    ENABLE_SCHEDULER: bool = True
    SCHEDULER_JITTER_SECONDS: float = 5.0
    REMINDER_INTERVAL_SECONDS: int = 24 * 60 * 60
    REMINDER_INITIAL_DELAY_SECONDS: float = 5.0
    WEEKLY_REPORT_INTERVAL_SECONDS: int = 7 * 24 * 60 * 60
    WEEKLY_REPORT_INITIAL_DELAY_SECONDS: float = 10.0
    MONTHLY_REPORT_INTERVAL_SECONDS: int = 30 * 24 * 60 * 60
    MONTHLY_REPORT_INITIAL_DELAY_SECONDS: float = 15.0

    @property
    def is_supabase(self) -> bool:
        """Check if we're using Supabase database"""
        return any(d in self.DATABASE_URL for d in [
            "supabase.co",
            "supabase.com",
            "pooler.supabase",
        ])

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

# Create a global settings instance
settings = Settings()
