from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:8080"

    # Database – SQLite für lokale Entwicklung
    DATABASE_URL: str = "sqlite+aiosqlite:///./phasebudget.db"

    # Budget engine
    # milestone = roster/attendance per milestone, project = per whole project
    BUDGET_PHASE_SCOPE: str = "milestone"
    DEFAULT_WORKING_DAYS_PER_MONTH: int = 26
    BUDGET_FETCH_TIMEOUT_SECONDS: float = 10.0
    BUDGET_FETCH_RETRIES: int = 2
    BUDGET_RETRY_BACKOFF_SECONDS: float = 0.2
    BUDGET_MAX_CONCURRENCY: int = 4

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
