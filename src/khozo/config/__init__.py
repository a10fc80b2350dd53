from .config import (
    Config,
    CredentialsConfig,
    ExtractionSettings,
    HttpConfig,
    LLMConfig,
    MonitoringConfig,
    settings,
)
from .credentials import SettingsCredentialStore, StaticCredentialStore

__all__ = [
    "Config",
    "CredentialsConfig",
    "ExtractionSettings",
    "HttpConfig",
    "LLMConfig",
    "MonitoringConfig",
    "SettingsCredentialStore",
    "StaticCredentialStore",
    "settings",
]
