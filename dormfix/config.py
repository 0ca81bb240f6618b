# dormfix/config.py
"""DormFix configuration.

Read once from the environment (and a local .env file) at startup, then passed
explicitly to every component.
"""
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when a required setting is missing."""


def _env_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    mongodb_uri: str | None = None
    database_name: str = "dormfix"

    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    token_expire_days: int = 7

    openai_api_key: str | None = None
    vision_model: str = "gpt-4o-mini"

    cloudinary_cloud_name: str | None = None
    cloudinary_api_key: str | None = None
    cloudinary_api_secret: str | None = None
    upload_folder: str = "dormfix"
    max_image_edge: int = 1200

    max_upload_files: int = 5
    max_upload_bytes: int = 5 * 1024 * 1024
    http_timeout_seconds: float = 30.0

    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    json_logs: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            mongodb_uri=os.getenv("MONGODB_URI"),
            database_name=os.getenv("MONGODB_DB", "dormfix"),
            jwt_secret=os.getenv("JWT_SECRET"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            token_expire_days=int(os.getenv("JWT_EXPIRES_DAYS", 7)),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            vision_model=os.getenv("VISION_MODEL", "gpt-4o-mini"),
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY"),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET"),
            upload_folder=os.getenv("UPLOAD_FOLDER", "dormfix"),
            max_image_edge=int(os.getenv("MAX_IMAGE_EDGE", 1200)),
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", 30)),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            json_logs=_env_bool("JSON_LOGS"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", 3000)),
        )

    def check(self) -> None:
        """Presence checks. Missing required values are fatal, missing provider keys are not."""
        missing = [
            name
            for name, value in (("MONGODB_URI", self.mongodb_uri), ("JWT_SECRET", self.jwt_secret))
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")

        if not self.openai_api_key:
            logger.warning("OPENAI_API_KEY not set; tickets will get fallback classification")
        if not (self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret):
            logger.warning("Cloudinary credentials incomplete; image uploads will fail")
