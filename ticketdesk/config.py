"""
Ticket Desk - Configuration Management
"""
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Store
    data_dir: Path = Path("./data")
    store_key: str = "tickets"

    # Tickets
    ticket_id_prefix: str = "TKT-"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TICKETDESK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def store_path(self) -> Path:
        """Location of the durable ticket record"""
        return self.data_dir / f"{self.store_key}.json"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
