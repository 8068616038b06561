from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    # Server
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3001)
    cors_origins: str = Field(default="*")
    log_level: str = Field(default="INFO")

    # Google Sheets
    google_credentials: Optional[str] = Field(default=None)  # service account JSON
    spreadsheet_id: str = Field(default="1jJdqZNmBdLqXoZeRTSmZvsM-HiKMs96hF5TSS-xWbXU")
    sheet_name: str = Field(default="Whitelist Server")
    sheets_timeout: float = Field(default=10.0)

    # Check log
    check_log_path: Path = Field(default=Path("data/server_logs.json"))
    check_log_limit: int = Field(default=1000)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }

    @property
    def cors_origin_list(self) -> list:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
