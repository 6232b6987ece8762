"""
Configuration loaders.

App config:      reads config.yaml, resolves env vars for secrets.
Session config:  reads sessions.default.json (or override), validates against JSON Schema.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    DataConfig,
    JournalConfig,
    load_config,
)
from config.session_config import (
    DispatchConfig,
    FeeConfig,
    HedgeConfig,
    SessionConfig,
    SessionConfigError,
    load_session_config,
)

__all__ = [
    # App config (YAML)
    "AlertingConfig",
    "AppConfig",
    "DataConfig",
    "JournalConfig",
    "load_config",
    # Session config (JSON + schema)
    "DispatchConfig",
    "FeeConfig",
    "HedgeConfig",
    "SessionConfig",
    "SessionConfigError",
    "load_session_config",
]
