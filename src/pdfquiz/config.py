"""
Application configuration.

Settings come from three places, later ones winning:

1. the defaults declared on ``Settings``
2. an optional JSON file (``config/app-config.json`` or ``PDFQUIZ_CONFIG_FILE``),
   either flat or nested under an ``"llm"`` key, camelCase keys allowed
3. ``PDFQUIZ_*`` environment variables (``PDFQUIZ_FALLBACK__API_KEY`` for nested values)
"""

import json
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, Field
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .models import Difficulty, ProviderConfig, ProviderKind

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config/app-config.json"

# endpoint and model used when a provider section leaves them out
PROVIDER_DEFAULTS = {
    ProviderKind.LOCAL_LLM: ("http://localhost:11434", "llama3"),
    ProviderKind.HOSTED_API: ("https://api.openai.com/v1", "gpt-4o-mini"),
}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_keys(value: Any) -> Any:
    """Recursively convert camelCase dict keys to snake_case"""
    if isinstance(value, dict):
        return {_CAMEL_RE.sub("_", str(k)).lower(): _snake_keys(v) for k, v in value.items()}
    return value


# settings for the secondary provider tried once after the primary fails
class FallbackSettings(BaseModel):
    provider: ProviderKind = ProviderKind.HOSTED_API
    endpoint: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout_ms: Optional[int] = None


class JsonConfigFileSource(PydanticBaseSettingsSource):
    """Reads settings from the app-config.json file when one exists"""

    def __init__(self, settings_cls: Type[BaseSettings], path: Optional[str]):
        super().__init__(settings_cls)
        self.path = Path(path) if path else None

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        # values are handed over in bulk by __call__
        return None, field_name, False

    def __call__(self) -> Dict[str, Any]:
        if self.path is None or not self.path.is_file():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable config file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.path}: top level is not an object")
            return {}
        # app-config.json files keep llm options under an "llm" key
        if isinstance(data.get("llm"), dict):
            merged = {k: v for k, v in data.items() if k != "llm"}
            merged.update(data["llm"])
            data = merged
        values = _snake_keys(data)
        return {k: v for k, v in values.items() if k in self.settings_cls.model_fields}


class Settings(BaseSettings):
    """Application settings, validated from file and environment"""

    model_config = SettingsConfigDict(
        env_prefix="PDFQUIZ_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # ── Provider ──────────────────────────────────────────
    provider: ProviderKind = ProviderKind.LOCAL_LLM
    endpoint: Optional[str] = None
    model: Optional[str] = None
    temperature: float = 0.3
    max_tokens: int = 2000
    timeout_ms: int = 60000
    api_key: Optional[str] = None
    fallback: Optional[FallbackSettings] = None

    # ── Generation ────────────────────────────────────────
    default_questions: int = Field(default=10, gt=0)
    default_difficulty: Difficulty = Difficulty.MEDIUM
    chars_per_token: float = Field(default=3.5, gt=0)
    default_context_length: int = Field(default=4096, gt=0)
    max_chunk_chars: int = Field(default=4000, gt=0)
    min_text_chars: int = Field(default=1, ge=1)

    # ── Storage ───────────────────────────────────────────
    quiz_dir: str = "quiz/generated"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        config_file = os.environ.get("PDFQUIZ_CONFIG_FILE", DEFAULT_CONFIG_FILE)
        return (
            init_settings,
            env_settings,
            JsonConfigFileSource(settings_cls, config_file),
            file_secret_settings,
        )

    def provider_config(self) -> ProviderConfig:
        """Build the primary provider config with its optional fallback"""
        endpoint, model = PROVIDER_DEFAULTS[self.provider]
        fallback = None
        if self.fallback is not None:
            fb_endpoint, fb_model = PROVIDER_DEFAULTS[self.fallback.provider]
            fallback = ProviderConfig(
                provider=self.fallback.provider,
                endpoint=self.fallback.endpoint or fb_endpoint,
                model=self.fallback.model or fb_model,
                api_key=self.fallback.api_key,
                temperature=self._pick(self.fallback.temperature, self.temperature),
                max_tokens=self._pick(self.fallback.max_tokens, self.max_tokens),
                timeout_ms=self._pick(self.fallback.timeout_ms, self.timeout_ms),
            )
        return ProviderConfig(
            provider=self.provider,
            endpoint=self.endpoint or endpoint,
            model=self.model or model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout_ms=self.timeout_ms,
            api_key=self.api_key,
            fallback=fallback,
        )

    @staticmethod
    def _pick(value, default):
        return default if value is None else value


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance"""
    return Settings()
