from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from trackheat.providers.location import Accuracy


class Settings(BaseSettings):
    db_path: Path = Field(default=Path("data/locations.db3"))
    render_path: Path = Field(default=Path("data/heatmap.png"))

    # Tracking loop
    poll_interval: float = Field(default=5.0, gt=0)
    provider_timeout: float = Field(default=10.0, gt=0)
    accuracy: Accuracy = Accuracy.BEST

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TRACKHEAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings(**overrides) -> Settings:
    """Reads settings from the environment; keyword overrides win."""
    return Settings(**overrides)
