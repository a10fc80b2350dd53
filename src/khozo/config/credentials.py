"""
Credential store backed by the ``credentials`` config section.
"""

from __future__ import annotations

import os
from typing import Dict, Optional

from pydantic import SecretStr

from .config import CredentialsConfig

# Well-known provider variable names, checked when the config leaves a key unset.
_ENV_FALLBACKS: Dict[str, str] = {
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "caption_api_key": "SUPADATA_API_KEY",
    "youtube_api_key": "YOUTUBE_API_KEY",
}


class SettingsCredentialStore:
    """Resolve API keys from config first, then from provider env vars."""

    def __init__(self, credentials: CredentialsConfig) -> None:
        self._credentials = credentials

    def get(self, name: str) -> Optional[str]:
        secret = getattr(self._credentials, name, None)
        if isinstance(secret, SecretStr):
            value = secret.get_secret_value().strip()
            if value:
                return value
        env_name = _ENV_FALLBACKS.get(name)
        if env_name:
            value = os.environ.get(env_name, "").strip()
            if value:
                return value
        return None


class StaticCredentialStore:
    """In-memory store, handy for tests and embedding."""

    def __init__(self, values: Optional[Dict[str, str]] = None) -> None:
        self._values = dict(values or {})

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name) or None
