from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # App
    debug: bool = False
    log_level: str = "INFO"

    # Projection horizon
    default_horizon_years: int = 10
    max_horizon_years: int = 30

    # DSCR reporting bands: >= strong, >= adequate, else shortfall
    dscr_strong_threshold: Decimal = Decimal("1.20")
    dscr_adequate_threshold: Decimal = Decimal("1.00")

    # Mortgage stress test: rate bumps in percentage points
    stress_rate_steps: list[Decimal] = [Decimal("0"), Decimal("1"), Decimal("2")]

    # AI-extracted payment plans below this confidence are flagged for review
    extraction_min_confidence: int = 70


settings = Settings()
