"""Tests for CLI commands using click CliRunner. No network; uses fixture data."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cli.main import cli
from cli.structured_log import StructuredEventLogger
from data.execution_store import ExecutionStore


CSV_TEXT = """execID,orderID,symbol,side,lastQty,lastPx,execType,ordType,ordStatus,execCost,execComm,timestamp,text
e1,o1,XBTUSD,Buy,100,50000,Trade,Limit,Filled,-200000,5000,2024-01-02T09:30:00.000Z,
e2,o2,XBTUSD,Sell,100,51000,Trade,Limit,Filled,196078,5000,2024-01-02T09:40:00.000Z,
e3,o3,XBTUSD,Sell,40,50500,Trade,Limit,Filled,79207,2000,2024-01-02T11:00:00.000Z,
"""


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Write a temp config.yaml pointing at temp store, journal and CSV."""
    db_path = tmp_path / "executions.db"
    journal_path = tmp_path / "sessions.jsonl"
    csv_path = tmp_path / "executions.csv"
    csv_path.write_text(CSV_TEXT)
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        f"""
exchange: bitmex
data:
  store_path: "{db_path}"
  executions_csv: "{csv_path}"
journal:
  path: "{journal_path}"
  echo_stdout: false
alerting:
  structured_logs: false
"""
    )
    return config_path


@pytest.fixture
def ingested_config(tmp_config: Path) -> Path:
    result = CliRunner().invoke(cli, ["--config", str(tmp_config), "ingest"])
    assert result.exit_code == 0, result.output
    return tmp_config


def test_cli_ingest(tmp_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_config), "ingest"])
    assert result.exit_code == 0, result.output
    assert "Stored 3 bitmex executions" in result.output
    assert "Total bitmex executions in store: 3" in result.output
    assert ExecutionStore(tmp_config.parent / "executions.db").count_executions("bitmex") == 3


def test_cli_ingest_emits_only_ingest_event(tmp_config: Path) -> None:
    runner = CliRunner()
    with patch.object(StructuredEventLogger, "_emit", autospec=True, return_value={}) as emit:
        result = runner.invoke(cli, ["--config", str(tmp_config), "ingest"])
    assert result.exit_code == 0, result.output
    assert [c.args[1] for c in emit.call_args_list] == ["ingest_complete"]


def test_cli_ingest_missing_file(tmp_config: Path, tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_config), "ingest", "--file", str(tmp_path / "nope.csv")])
    assert result.exit_code != 0
    assert "not found" in result.output


def test_cli_ingest_exchange_override(tmp_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_config), "--exchange", "OKX", "ingest"])
    assert result.exit_code == 0, result.output
    store = ExecutionStore(tmp_config.parent / "executions.db")
    assert store.count_executions("okx") == 3
    assert store.count_executions("bitmex") == 0


def test_cli_list(ingested_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(ingested_config), "list"])
    assert result.exit_code == 0, result.output
    assert "BTCUSD" in result.output
    assert "closed" in result.output
    assert "open" in result.output


def test_cli_list_status_filter(ingested_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(ingested_config), "list", "--status", "closed"])
    assert result.exit_code == 0, result.output
    session_lines = [line for line in result.output.splitlines() if line.startswith("BTCUSD")]
    assert len(session_lines) == 1
    assert "closed" in session_lines[0]


def test_cli_list_detail(ingested_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(ingested_config), "list", "--detail", "--limit", "1"])
    assert result.exit_code == 0, result.output
    assert "--- Session XBTUSD-" in result.output
    assert "Net PnL" in result.output


def test_cli_list_journal(ingested_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(ingested_config), "list", "--journal"])
    assert result.exit_code == 0, result.output
    lines = (ingested_config.parent / "sessions.jsonl").read_text().splitlines()
    events = [json.loads(line)["event"] for line in lines]
    assert events == ["run", "session", "session"]
    assert json.loads(lines[0])["mode"] == "inverse"


def test_cli_list_empty_store(tmp_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_config), "list"])
    assert result.exit_code == 0, result.output
    assert "Run 'sessions ingest' first" in result.output


def test_cli_stats(ingested_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(ingested_config), "stats"])
    assert result.exit_code == 0, result.output
    assert "=== Sessions: bitmex ===" in result.output
    assert "2 (1 closed, 1 open)" in result.output
    assert "XBTUSD" in result.output


def test_cli_bad_session_config(tmp_config: Path, tmp_path: Path) -> None:
    bad = tmp_path / "sessions.json"
    bad.write_text("{ nope }")
    with open(tmp_config, "a") as f:
        f.write(f'session_config: "{bad}"\n')
    runner = CliRunner()
    runner.invoke(cli, ["--config", str(tmp_config), "ingest"])
    result = runner.invoke(cli, ["--config", str(tmp_config), "stats"])
    assert result.exit_code != 0
    assert "not valid JSON" in result.output


def test_cli_health_ok(ingested_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(ingested_config), "health"])
    assert result.exit_code == 0, result.output
    assert "[OK] config" in result.output
    assert "[OK] session_config" in result.output
    assert "HEALTHY" in result.output


def test_cli_health_no_executions(tmp_config: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_config), "health"])
    assert result.exit_code == 1
    assert "[FAIL] executions" in result.output
    assert "UNHEALTHY" in result.output


def test_cli_health_missing_config(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_path / "missing.yaml"), "health"])
    assert result.exit_code == 1
    assert "[FAIL] config" in result.output
