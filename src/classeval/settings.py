import sys

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"
    probability_tolerance: float = 0.01

    model_config = SettingsConfigDict(env_prefix="CLASSEVAL_")


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with a stderr sink at the configured level."""

    logger.remove()
    logger.add(sys.stderr, level=(level or settings.log_level).upper())
