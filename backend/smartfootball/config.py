from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """A required setting is missing; nothing should run without it."""


class Settings(BaseSettings):
    database_url: str = ""
    db_pool_size: int = 5
    db_command_timeout_seconds: float = 30.0

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 30.0

    prediction_horizon_hours: int = 48
    prediction_batch_limit: int = 20
    model_call_interval_seconds: float = 2.0

    min_competition_sample: int = 3
    accuracy_default_weeks: int = 8
    accuracy_max_weeks: int = 52

    cron_secret: str = ""
    cors_origins: str = "http://localhost:5173"
    scheduler_enabled: bool = True
    log_level: str = "INFO"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    def require(self, *names: str) -> None:
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                "Missing required settings: "
                + ", ".join(name.upper() for name in missing)
            )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()


def get_settings() -> Settings:
    return settings
