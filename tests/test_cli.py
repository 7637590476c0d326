"""Tests for configuration loading, watcher wiring and the audit log."""

import json
import logging
import sys

import pytest
from solders.pubkey import Pubkey

from raypool.cli import OPTIONAL_DEFAULTS, build_watcher, load_config, main
from raypool.monitoring.logs_listener import LogsListener
from raypool.pools.base import PoolDescriptor
from raypool.utils import logger as logger_module
from raypool.utils.audit_logger import AuditLogger
from tests.fixtures import FakeSolanaClient, key


@pytest.fixture
def clean_env(monkeypatch):
    for var in OPTIONAL_DEFAULTS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_load_config_defaults(clean_env):
    cfg = load_config("raypool.config")

    assert cfg["SOLANA_NODE_RPC_ENDPOINT"]
    assert cfg["SOLANA_NODE_WSS_ENDPOINT"]
    assert cfg["RAYDIUM_AMM_PROGRAM_ID"] == "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
    assert cfg["MAX_RECONNECT_ATTEMPTS"] == 5
    assert cfg["ORDERED_PROCESSING"] is False


def test_environment_overrides_are_coerced(clean_env):
    clean_env.setenv("MAX_RECONNECT_ATTEMPTS", "7")
    clean_env.setenv("RECONNECT_MAX_DELAY_SECONDS", "12.5")
    clean_env.setenv("ORDERED_PROCESSING", "true")
    clean_env.setenv("TX_FETCH_RETRIES", "lots")

    cfg = load_config("raypool.config")

    assert cfg["MAX_RECONNECT_ATTEMPTS"] == 7
    assert cfg["RECONNECT_MAX_DELAY_SECONDS"] == 12.5
    assert cfg["ORDERED_PROCESSING"] is True
    assert cfg["TX_FETCH_RETRIES"] == OPTIONAL_DEFAULTS["TX_FETCH_RETRIES"]


def test_invalid_program_id_is_rejected(clean_env):
    clean_env.setenv("RAYDIUM_AMM_PROGRAM_ID", "not-an-address")
    with pytest.raises(ValueError, match="RAYDIUM_AMM_PROGRAM_ID"):
        load_config("raypool.config")


def test_missing_config_module(clean_env):
    with pytest.raises(ModuleNotFoundError):
        load_config("raypool.no_such_config")


@pytest.mark.asyncio
async def test_main_returns_error_code_on_bad_config(clean_env):
    assert await main(["--config", "raypool.no_such_config"]) == 1


def test_build_watcher_wires_settings(clean_env):
    clean_env.setenv("DEDUP_CACHE_SIZE", "500")
    clean_env.setenv("COMMITMENT", "finalized")
    cfg = load_config("raypool.config")

    watcher = build_watcher(cfg, FakeSolanaClient())

    assert isinstance(watcher.listener, LogsListener)
    assert watcher.listener.commitment == "finalized"
    assert watcher.listener.program_id == Pubkey.from_string(cfg["RAYDIUM_AMM_PROGRAM_ID"])
    assert watcher.signature_cache.max_size == 500
    assert watcher.extractor.processor is watcher.processor
    assert watcher.resolver.client is watcher.client


def test_audit_logger_appends_json_lines(tmp_path):
    path = tmp_path / "audit.log"
    audit = AuditLogger(log_to_file=True, filepath=str(path))
    descriptor = PoolDescriptor(
        address=Pubkey.from_string(key(4)),
        base_mint=Pubkey.from_string(key(8)),
        quote_mint=Pubkey.from_string(key(9)),
        base_decimals=6,
        quote_decimals=9,
        timestamp=1,
        signature="sig-1",
    )

    audit.log_pool_event("pool_detected", "sig-1", descriptor=descriptor)
    audit.log_pool_event("POOL_DROPPED", "sig-2", error=KeyError("boom"))

    lines = [json.loads(line) for line in path.read_text().splitlines()]
    assert lines[0]["event_type"] == "POOL_DETECTED"
    assert lines[0]["address"] == key(4)
    assert lines[0]["baseDecimals"] == 6
    assert lines[1]["error_type"] == "KeyError"
    assert lines[1]["signature"] == "sig-2"


def test_log_records_go_to_stderr(monkeypatch):
    root = logging.getLogger("raypool")
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(logger_module, "_configured", False)

    logger_module.get_logger("raypool.cli")

    stream_handlers = [h for h in root.handlers if isinstance(h, logging.StreamHandler)]
    assert len(stream_handlers) == 1
    assert stream_handlers[0].stream is sys.stderr
