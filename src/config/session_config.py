"""
Session config loader: JSON file -> frozen dataclass tree, validated against JSON Schema.

Default values:      docs/config/sessions.default.json
Schema:              docs/config/sessions_config.schema.json

Per-exchange overrides: place a partial JSON file named
``sessions.{EXCHANGE}.json`` next to the default config (e.g.
``docs/config/sessions.BINANCE.json``). Only the keys you want to override
need to be present; they are deep-merged on top of the base config before
schema validation.

Usage:
    from config.session_config import load_session_config
    cfg = load_session_config()                      # loads default
    cfg = load_session_config(exchange="okx")        # merges sessions.OKX.json if present
    cfg.hedge.position_tolerance  # -> 0.01

``SessionConfig()`` with no arguments carries the same values as the shipped
default file, so session-core can run without reading anything from disk.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import jsonschema

logger = logging.getLogger("sessions.config")

# ---------------------------------------------------------------------------
# Project root detection (walk up from this file to find pyproject.toml)
# ---------------------------------------------------------------------------


def _find_project_root() -> Path:
    """Walk up from this file looking for pyproject.toml.

    When installed as a package the file won't exist; fall back to CWD.
    """
    candidate = Path(__file__).resolve().parent
    for _ in range(10):
        if (candidate / "pyproject.toml").exists():
            return candidate
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    return Path.cwd()


_PROJECT_ROOT = _find_project_root()

DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "docs" / "config" / "sessions.default.json"
DEFAULT_SCHEMA_PATH = _PROJECT_ROOT / "docs" / "config" / "sessions_config.schema.json"


# ---------------------------------------------------------------------------
# Frozen dataclass tree: mirrors sessions.default.json structure exactly
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HedgeConfig:
    position_tolerance: float = 0.01      # |position| below this counts as flat
    session_gap_seconds: float = 7200.0   # idle gap that forces a session break

    @property
    def session_gap(self) -> timedelta:
        return timedelta(seconds=self.session_gap_seconds)


@dataclass(frozen=True)
class FeeConfig:
    minor_units_per_major: float = 100_000_000.0


@dataclass(frozen=True)
class DispatchConfig:
    hedge_exchanges: tuple[str, ...] = ("binance", "okx", "bybit")
    inverse_exchanges: tuple[str, ...] = ("bitmex",)
    hedge_symbol_markers: tuple[str, ...] = ("-SWAP", "-USDT-", "_PERP")
    hedge_symbol_suffixes: tuple[str, ...] = ("USDT", "USDC", "BUSD")


@dataclass(frozen=True)
class SessionConfig:
    """Top-level calculator configuration."""
    version: str = "0.1"
    hedge: HedgeConfig = field(default_factory=HedgeConfig)
    fees: FeeConfig = field(default_factory=FeeConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)


# ---------------------------------------------------------------------------
# Deep merge for per-exchange overrides
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into a copy of *base*.

    - Dict values are merged recursively (override keys win).
    - Non-dict values in overrides replace the base value.
    - Keys in base that are absent from overrides are preserved.
    """
    merged = dict(base)
    for key, val in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(val, dict):
            merged[key] = _deep_merge(merged[key], val)
        else:
            merged[key] = val
    return merged


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class SessionConfigError(Exception):
    """Raised when session config loading or validation fails."""


def _validate_schema(data: dict[str, Any], schema_path: Path) -> None:
    """Validate *data* against the JSON Schema at *schema_path*."""
    if not schema_path.exists():
        raise SessionConfigError(f"Schema file not found: {schema_path}")
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise SessionConfigError(f"Session config validation failed: {exc.message}") from exc


def _build_config(data: dict[str, Any]) -> SessionConfig:
    """Convert a raw dict (already validated) into the frozen dataclass tree."""
    hedge_raw = data["hedge"]
    fees_raw = data.get("fees", {})
    dispatch_raw = data.get("dispatch", {})
    defaults = DispatchConfig()

    return SessionConfig(
        version=data["version"],
        hedge=HedgeConfig(
            position_tolerance=float(hedge_raw["position_tolerance"]),
            session_gap_seconds=float(hedge_raw["session_gap_seconds"]),
        ),
        fees=FeeConfig(
            minor_units_per_major=float(fees_raw.get("minor_units_per_major", 100_000_000)),
        ),
        dispatch=DispatchConfig(
            hedge_exchanges=tuple(
                e.lower() for e in dispatch_raw.get("hedge_exchanges", defaults.hedge_exchanges)
            ),
            inverse_exchanges=tuple(
                e.lower() for e in dispatch_raw.get("inverse_exchanges", defaults.inverse_exchanges)
            ),
            hedge_symbol_markers=tuple(
                dispatch_raw.get("hedge_symbol_markers", defaults.hedge_symbol_markers)
            ),
            hedge_symbol_suffixes=tuple(
                dispatch_raw.get("hedge_symbol_suffixes", defaults.hedge_symbol_suffixes)
            ),
        ),
    )


def load_session_config(
    config_path: str | Path | None = None,
    schema_path: str | Path | None = None,
    exchange: str | None = None,
) -> SessionConfig:
    """Load and validate session calculator configuration.

    Parameters
    ----------
    config_path:
        Path to a JSON config file.  Defaults to ``docs/config/sessions.default.json``.
    schema_path:
        Path to the JSON Schema file.  Defaults to ``docs/config/sessions_config.schema.json``.
    exchange:
        Optional exchange id.  When provided, the loader looks for an
        override file ``sessions.{EXCHANGE}.json`` in the same directory as
        the base config and deep-merges it before schema validation.  A
        missing override file is not an error.

    Returns
    -------
    SessionConfig
        Frozen dataclass tree with all calculator parameters.

    Raises
    ------
    SessionConfigError
        If the file is missing, unparseable, or fails schema validation.
    """
    cfg_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    sch_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH

    if not cfg_path.exists():
        raise SessionConfigError(f"Session config file not found: {cfg_path}")

    try:
        with open(cfg_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise SessionConfigError(f"Session config is not valid JSON: {exc}") from exc

    if exchange:
        override_path = cfg_path.parent / f"sessions.{exchange.upper()}.json"
        if override_path.exists():
            try:
                with open(override_path) as f:
                    overrides = json.load(f)
            except json.JSONDecodeError as exc:
                raise SessionConfigError(
                    f"Per-exchange config {override_path.name} is not valid JSON: {exc}"
                ) from exc
            data = _deep_merge(data, overrides)
            logger.info("Loaded per-exchange config: %s", override_path.name)
        else:
            logger.debug("No per-exchange config found at %s, using defaults", override_path)

    _validate_schema(data, sch_path)

    return _build_config(data)
