"""
Config loader: YAML file -> frozen dataclass tree.

The alerting webhook may be supplied via the SESSIONS_WEBHOOK_URL environment
variable instead of the file. Config file holds only non-secret values.
"""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True)
class DataConfig:
    store_path: str = "data/executions.db"
    executions_csv: str = "executions.csv"


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/sessions.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    exchange: str
    data: DataConfig
    journal: JournalConfig
    alerting: AlertingConfig = AlertingConfig()
    session_config_path: str | None = None


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    SESSIONS_WEBHOOK_URL, when set, overrides alerting.webhook_url.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    data_raw = raw.get("data", {})
    data_cfg = DataConfig(
        store_path=data_raw.get("store_path", "data/executions.db"),
        executions_csv=data_raw.get("executions_csv", "executions.csv"),
    )

    j_raw = raw.get("journal", {})
    j_cfg = JournalConfig(
        path=j_raw.get("path", "data/sessions.jsonl"),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    a_raw = raw.get("alerting", {})
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=os.environ.get("SESSIONS_WEBHOOK_URL", str(a_raw.get("webhook_url", ""))),
    )

    return AppConfig(
        exchange=str(raw.get("exchange", "bitmex")).lower(),
        data=data_cfg,
        journal=j_cfg,
        alerting=a_cfg,
        session_config_path=raw.get("session_config"),
    )
