# config.py - settings read from the environment (Vercel & local)

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

PROVIDERS = ("anthropic", "gemini")

# provider -> (API key variable, default model)
PROVIDER_DEFAULTS = {
    "anthropic": ("ANTHROPIC_API_KEY", "claude-sonnet-4-5-20250929"),
    "gemini": ("GEMINI_API_KEY", "gemini-2.5-flash"),
}


@dataclass
class Settings:
    provider: str = "anthropic"
    api_key: Optional[str] = None
    model_name: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 2048
    timeout: float = 40.0
    cache_ttl_seconds: float = 60 * 60
    cache_sweep_threshold: int = 100
    log_level: str = "INFO"
    port: int = 5000

    @property
    def api_key_env(self) -> str:
        return PROVIDER_DEFAULTS[self.provider][0]

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, environ=None, load_dotenv_file: bool = True) -> "Settings":
        """Build settings from environment variables (plus a local .env when present)."""
        if environ is None:
            if load_dotenv_file:
                load_dotenv()
            environ = os.environ

        provider = environ.get("ANALYZER_PROVIDER", "anthropic").strip().lower()
        if provider not in PROVIDERS:
            raise ValueError(
                f"Unknown ANALYZER_PROVIDER: {provider!r}. Expected one of {', '.join(PROVIDERS)}."
            )

        key_env, default_model = PROVIDER_DEFAULTS[provider]
        model_env = "ANTHROPIC_MODEL" if provider == "anthropic" else "GEMINI_MODEL"

        return cls(
            provider=provider,
            api_key=environ.get(key_env) or None,
            model_name=environ.get(model_env, default_model),
            max_tokens=int(environ.get("ANTHROPIC_MAX_TOKENS", "2048")),
            timeout=float(environ.get("ANALYZER_TIMEOUT", "40")),
            cache_ttl_seconds=float(environ.get("CACHE_TTL_SECONDS", "3600")),
            cache_sweep_threshold=int(environ.get("CACHE_SWEEP_THRESHOLD", "100")),
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
            port=int(environ.get("PORT", "5000")),
        )
