from __future__ import annotations

import logging
import os
from enum import StrEnum
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from termify.documents.errors import ServiceUnavailable

logger = logging.getLogger(__name__)


class LLMProvider(StrEnum):
    MOCK = "mock"
    GATEWAY = "gateway"
    ANTHROPIC = "anthropic"


class StorageBackend(StrEnum):
    LOCAL = "local"
    SUPABASE = "supabase"


DEFAULT_GATEWAY_MODEL = "google/gemini-2.5-flash"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1"
DEFAULT_STORAGE_DIR = Path(__file__).resolve().parent.parent.parent / "data" / "uploads"
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


class LLMSettings(BaseModel):
    """Chat-completion endpoint settings."""

    provider: LLMProvider = LLMProvider.MOCK
    model: Optional[str] = None
    base_url: str = DEFAULT_GATEWAY_URL
    api_key: Optional[str] = None
    timeout_seconds: float = Field(default=60.0, gt=0)
    segment_temperature: float = 0.3
    analyze_temperature: float = 0.2

    def resolve_model(self) -> str:
        """Explicit model, else the provider's default."""
        if self.model:
            return self.model
        if self.provider == LLMProvider.ANTHROPIC:
            return DEFAULT_ANTHROPIC_MODEL
        if self.provider == LLMProvider.MOCK:
            return "mock"
        return DEFAULT_GATEWAY_MODEL


class StorageSettings(BaseModel):
    """Object store used to stage uploaded documents."""

    backend: StorageBackend = StorageBackend.LOCAL
    local_dir: Path = DEFAULT_STORAGE_DIR
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    bucket: str = "documents"


class TermifySettings(BaseModel):
    """Top-level settings handed to the pipeline at construction."""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> TermifySettings:
    """Build settings from environment variables. Unset values keep their defaults.

    An unrecognised or out-of-range value raises ServiceUnavailable so the
    API answers with a configuration error instead of a generic failure.
    """
    env = os.environ if environ is None else environ
    try:
        return _settings_from_env(env)
    except ValueError as exc:
        logger.error("Invalid Termify configuration: %s", exc)
        raise ServiceUnavailable("Server configuration error") from exc


def _settings_from_env(env: Mapping[str, str]) -> TermifySettings:
    provider = LLMProvider(env.get("TERMIFY_LLM_PROVIDER", LLMProvider.MOCK.value))
    api_key = env.get("TERMIFY_LLM_API_KEY")
    if not api_key:
        if provider == LLMProvider.ANTHROPIC:
            api_key = env.get("ANTHROPIC_API_KEY")
        else:
            api_key = env.get("LOVABLE_API_KEY")

    llm = LLMSettings(
        provider=provider,
        model=env.get("TERMIFY_LLM_MODEL") or None,
        base_url=env.get("TERMIFY_LLM_BASE_URL", DEFAULT_GATEWAY_URL),
        api_key=api_key or None,
        timeout_seconds=float(env.get("TERMIFY_LLM_TIMEOUT", "60")),
    )

    storage = StorageSettings(
        backend=StorageBackend(env.get("TERMIFY_STORAGE_BACKEND", StorageBackend.LOCAL.value)),
        local_dir=Path(env.get("TERMIFY_STORAGE_DIR", str(DEFAULT_STORAGE_DIR))),
        supabase_url=env.get("SUPABASE_URL") or None,
        supabase_service_key=env.get("SUPABASE_SERVICE_ROLE_KEY") or None,
        bucket=env.get("TERMIFY_STORAGE_BUCKET", "documents"),
    )

    return TermifySettings(
        llm=llm,
        storage=storage,
        max_upload_bytes=int(env.get("TERMIFY_MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))),
    )
