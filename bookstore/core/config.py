"""Runtime settings for the bookstore API, read from the environment or `.env`."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All tunables; only the composition root reads them."""

    database_url: str = "sqlite+aiosqlite:///./bookstore.db"
    storage_backend: Literal["local", "s3"] = "local"
    storage_path: str = "./storage"
    s3_bucket: str = "bookstore-assets"
    s3_region: str = "us-east-1"
    s3_endpoint_url: str = ""  # e.g. http://minio:9000 for MinIO
    s3_access_key: str = ""
    s3_secret_key: str = ""
    asset_base_url: str = "/assets"  # public prefix for stored covers
    enrichment_provider: Literal["heuristic", "openai", "llama"] = "heuristic"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    llm_base_url: str = "http://localhost:11434"  # Ollama endpoint
    llm_model: str = "llama3"
    google_books_api_key: str = ""
    http_timeout: float = 20.0
    strict_isbn_checksum: bool = False
    log_level: str = "INFO"

    model_config = {"env_file": ".env"}


@lru_cache()
def get_settings() -> Settings:
    """Settings are parsed once per process."""
    return Settings()
