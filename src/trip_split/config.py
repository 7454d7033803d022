"""Configuration management for TripSplit."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .models import RemainderPolicy, SplitPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Expense splitting
    split_policy: SplitPolicy = SplitPolicy.EQUAL_EXCLUDING_PAYER
    remainder_policy: RemainderPolicy = RemainderPolicy.DISCARD

    # Room settings
    max_days: int = 14  # Upper bound offered by the room settings form
    room_id_length: int = 6  # Length of generated room ids and passwords

    # Display
    currency_symbol: str = "¥"

    # Database path
    database_path: Path = Path.home() / ".trip_split" / "trip_split.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the values in your .env file "
            f"(see .env.example for reference).\n"
            f"Error: {e}"
        ) from e
