"""
Process-wide settings, read once at startup.
Set S3_REGION, S3_ACCESS_KEY, S3_SECRET_KEY, S3_BUCKET, OPENAI_API_KEY (optionally via backend/.env).
"""
from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PORT = 8080
DEFAULT_UPLOAD_URL_EXPIRES_IN = 3600
DEFAULT_MAX_DOCUMENT_BYTES = 50 * 1024 * 1024  # 50MB


def _clean(value: Optional[str]) -> Optional[str]:
    v = (value or "").strip()
    return v or None


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _clean(env.get(key))
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


class Settings(BaseModel):
    """Immutable configuration handed to each service constructor."""

    model_config = ConfigDict(frozen=True)

    s3_region: str = "us-east-1"
    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None
    s3_bucket: str = ""
    s3_connect_timeout_seconds: int = Field(default=10, gt=0)
    s3_read_timeout_seconds: int = Field(default=60, gt=0)
    upload_url_expires_in: int = Field(default=DEFAULT_UPLOAD_URL_EXPIRES_IN, gt=0)

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4.1"
    extraction_timeout_seconds: int = Field(default=300, gt=0)
    max_document_bytes: int = Field(default=DEFAULT_MAX_DOCUMENT_BYTES, gt=0)

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    allowed_origins: tuple[str, ...] = ("*",)

    @property
    def ai_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        origins_raw = _clean(env.get("ALLOWED_ORIGINS"))
        origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip()) if origins_raw else ("*",)
        return cls(
            s3_region=_clean(env.get("S3_REGION")) or "us-east-1",
            s3_access_key=_clean(env.get("S3_ACCESS_KEY")),
            s3_secret_key=_clean(env.get("S3_SECRET_KEY")),
            s3_bucket=_clean(env.get("S3_BUCKET")) or "",
            s3_connect_timeout_seconds=_int(env, "S3_CONNECT_TIMEOUT_SECONDS", 10),
            s3_read_timeout_seconds=_int(env, "S3_READ_TIMEOUT_SECONDS", 60),
            upload_url_expires_in=_int(env, "UPLOAD_URL_EXPIRES_IN", DEFAULT_UPLOAD_URL_EXPIRES_IN),
            openai_api_key=_clean(env.get("OPENAI_API_KEY")),
            openai_model=_clean(env.get("OPENAI_OM_MODEL")) or "gpt-4.1",
            extraction_timeout_seconds=_int(env, "EXTRACTION_TIMEOUT_SECONDS", 300),
            max_document_bytes=_int(env, "MAX_DOCUMENT_BYTES", DEFAULT_MAX_DOCUMENT_BYTES),
            host=_clean(env.get("HOST")) or "0.0.0.0",
            port=_int(env, "PORT", DEFAULT_PORT),
            allowed_origins=origins,
        )
