import os
import json
import sys
from dataclasses import dataclass
from typing import Tuple

from cms.errors import ConfigError


# Debug flag: default off. Enable via CLI arg "--cms-debug" or env CMS_DEBUG=1.
DEBUG = "--cms-debug" in sys.argv or os.environ.get("CMS_DEBUG") == "1"


def dlog(label: str, data):
    if not DEBUG:
        return
    try:
        printable = data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False, default=str)
    except Exception:
        printable = str(data)
    print(f"[cms-debug] {label}: {printable}")


DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def _first_env(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class Settings:
    database_url: str
    database_name: str
    image_host: str
    image_host_api_key: str
    max_upload_bytes: int
    jwt_secret: str
    admin_username: str
    admin_password: str | None
    admin_password_hash: str | None
    cors_origins: Tuple[str, ...]
    host: str
    port: int


def load_settings() -> Settings:
    """Read server settings from env. Only the database URL is mandatory."""
    database_url = _first_env("DATABASE_URL", "MONGODB_URI")
    if not database_url:
        raise ConfigError("Missing DATABASE_URL env var. Set it to your document store connection string.")

    raw_max = _first_env("MAX_UPLOAD_BYTES")
    raw_port = _first_env("PORT") or "4000"
    try:
        max_upload_bytes = int(raw_max) if raw_max else DEFAULT_MAX_UPLOAD_BYTES
        port = int(raw_port)
    except ValueError as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e
    if max_upload_bytes <= 0:
        raise ConfigError("MAX_UPLOAD_BYTES must be positive")

    origins = _first_env("CORS_ORIGINS") or "*"
    settings = Settings(
        database_url=database_url,
        database_name=_first_env("DATABASE_NAME", "MONGODB_DB") or "nuvacm",
        image_host=(_first_env("IMAGE_HOST") or "imghippo").lower(),
        image_host_api_key=_first_env("IMAGE_HOST_API_KEY", "IMGHIPPO_API_KEY", "IMGBB_API_KEY") or "",
        max_upload_bytes=max_upload_bytes,
        jwt_secret=_first_env("JWT_SECRET") or "change-me-in-production",
        admin_username=_first_env("ADMIN_USERNAME") or "admin",
        admin_password=os.environ.get("ADMIN_PASSWORD", "admin123"),
        admin_password_hash=_first_env("ADMIN_PASSWORD_HASH"),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        host=_first_env("HOST") or "127.0.0.1",
        port=port,
    )
    dlog(
        "settings_loaded",
        {
            "database_name": settings.database_name,
            "image_host": settings.image_host,
            "has_image_host_key": bool(settings.image_host_api_key),
            "max_upload_bytes": settings.max_upload_bytes,
            "admin_username": settings.admin_username,
            "auth_mode": "hash" if settings.admin_password_hash else "password",
        },
    )
    return settings
