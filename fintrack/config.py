from pathlib import Path
from datetime import date
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent

class Settings(BaseSettings):
    PROJECT_NAME: str = "Fintrack API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR}/data/finance.db"
    DATABASE_ECHO: bool = False

    BACKEND_CORS_ORIGINS: list[str] = ["*"]

    # Pins "today" for demos and tests; None means the real date.
    FROZEN_TODAY: Optional[date] = None

    MONTHLY_WINDOW: int = 6
    ENFORCE_CATEGORY_VOCABULARY: bool = False

    SEED_DEMO_DATA: bool = False
    DEMO_USER_ID: str = "demo"
    DEMO_DATA_PATH: Path = BASE_DIR / "fintrack" / "data" / "demo_transactions.csv"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    def today(self) -> date:
        return self.FROZEN_TODAY or date.today()

settings = Settings()
