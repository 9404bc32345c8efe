"""
Shared configuration for the timelens pipeline.

Backend credentials and model selection come from the environment (or a
.env file) so the same code runs locally with the dummy backend and against
the hosted Gemini API.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pipeline settings."""

    # Service identification
    service_name: str = "timelens"
    environment: str = "development"

    # Logging
    log_level: str = "info"
    log_json: bool = False

    # Inference backend (Gemini API)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"

    # Upload / processing poll loop
    poll_interval_sec: float = 5.0
    poll_max_attempts: int = 120  # 10 minutes at the default interval
    # Retries for a single status fetch that fails with a transient transport error
    status_retries: int = 3
    max_upload_bytes: int = 2 * 1024 * 1024 * 1024  # 2GB, the Files API cap

    # OpenTelemetry configuration
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "timelens"

    # Prompt catalog override (defaults to config/prompts.yaml)
    prompts_path: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
