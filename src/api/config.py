"""Application configuration and constants."""

from typing import Dict, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

FORMAT_MIME_TYPES: Dict[str, str] = {
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "png": "image/png",
    "avif": "image/avif",
}

FORMAT_ALIASES: Dict[str, str] = {
    "jpg": "jpeg",
    "image/jpg": "jpeg",
    "image/pjpeg": "jpeg",
}

FORMAT_EXTENSIONS: Dict[str, str] = {
    "jpeg": ".jpg",
    "webp": ".webp",
    "png": ".png",
    "avif": ".avif",
}

DEFAULT_FORMAT = "image/jpeg"
DEFAULT_MAX_ITERATIONS = 10
DEFAULT_MIN_QUALITY = 0.1
DEFAULT_MAX_QUALITY = 0.95
DEFAULT_TOLERANCE_BYTES = 5 * 1024
DEFAULT_SCALE_STEP = 0.9
DEFAULT_SCALE_FLOOR = 0.25

MAX_INPUT_SIZE_MB = 50
REQUEST_TIMEOUT_SECONDS = 30


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_cors_origins: str = "*"

    max_input_size_mb: int = MAX_INPUT_SIZE_MB
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS

    default_format: Literal["jpeg", "webp", "png", "avif"] = "jpeg"
    default_tolerance_kb: float = DEFAULT_TOLERANCE_BYTES / 1024
    scale_step: float = DEFAULT_SCALE_STEP
    scale_floor: float = DEFAULT_SCALE_FLOOR

    log_level: str = "INFO"
    log_format: str = "json"

    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 60
    rate_limit_per_hour: int = 1000

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if self.api_cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.api_cors_origins.split(",")]

    @property
    def max_input_size_bytes(self) -> int:
        """Maximum accepted upload size in bytes."""
        return self.max_input_size_mb * 1024 * 1024

    @property
    def default_tolerance_bytes(self) -> int:
        """Default size tolerance in bytes."""
        return int(round(self.default_tolerance_kb * 1024))


settings = Settings()
