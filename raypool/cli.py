# raypool/cli.py

import argparse
import asyncio
import importlib
import json
import os
import sys
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from solana.rpc.commitment import Commitment
from solders.pubkey import Pubkey

from raypool.core.client import SolanaClient
from raypool.core.exceptions import ReconnectBudgetExhausted
from raypool.monitoring.dedup import SignatureCache
from raypool.monitoring.logs_event_processor import LogsEventProcessor
from raypool.monitoring.logs_listener import LogsListener
from raypool.pools.base import PoolDescriptor
from raypool.pools.extractor import PoolKeysExtractor
from raypool.pools.watcher import PoolWatcher
from raypool.utils.audit_logger import AuditLogger
from raypool.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_MODULE = "raypool.config"

OPTIONAL_DEFAULTS: Dict[str, Any] = {
    "RAYDIUM_AMM_PROGRAM_ID": "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
    "COMMITMENT": "confirmed",
    "NATIVE_MINT": "So11111111111111111111111111111111111111112",
    "NATIVE_DECIMALS": 9,
    "RECONNECT_BASE_DELAY_SECONDS": 1.0,
    "RECONNECT_MAX_DELAY_SECONDS": 30.0,
    "MAX_RECONNECT_ATTEMPTS": 5,
    "DEDUP_CACHE_SIZE": 0,
    "TX_FETCH_RETRIES": 3,
    "TX_FETCH_RETRY_DELAY_SECONDS": 1.0,
    "ORDERED_PROCESSING": False,
    "AUDIT_LOG_TO_FILE": False,
    "AUDIT_LOG_PATH": "pool_audit.log",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _coerce(raw: Any, default: Any) -> Any:
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    return type(default)(raw)


def load_config(config_path: str = DEFAULT_CONFIG_MODULE) -> Dict[str, Any]:
    """Load and validate the watcher configuration from a Python module."""
    logger.info(f"Attempting to load configuration from: {config_path}")

    # Normalize to a Python import path
    module_path = config_path.replace("/", ".").replace("\\", ".")
    # If user passed a .py filename, strip that exact suffix
    if module_path.endswith(".py"):
        module_path = module_path[:-3]

    try:
        cfg_mod = importlib.import_module(module_path)
    except ModuleNotFoundError:
        logger.critical(f"FATAL: Config module not found: '{module_path}'.")
        raise

    # 1) Required core values
    config: Dict[str, Any] = {}
    for var in ("SOLANA_NODE_RPC_ENDPOINT", "SOLANA_NODE_WSS_ENDPOINT"):
        val = getattr(cfg_mod, var, None) or os.getenv(var)
        if not val:
            raise ValueError(f"Missing required config var: {var}")
        config[var] = val

    # 2) All other optional settings; environment wins over the module
    for var, default in OPTIONAL_DEFAULTS.items():
        raw = os.getenv(var, getattr(cfg_mod, var, None))
        if raw is None:
            config[var] = default
            continue
        try:
            config[var] = _coerce(raw, default)
        except (TypeError, ValueError):
            logger.warning(f"Config warning: invalid type for {var}, using default {default}")
            config[var] = default

    # 3) Addresses must parse
    for var in ("RAYDIUM_AMM_PROGRAM_ID", "NATIVE_MINT"):
        try:
            Pubkey.from_string(config[var])
        except ValueError as e:
            raise ValueError(f"Config var {var} is not a valid address: {config[var]}") from e

    logger.info("Configuration loaded successfully.")
    return config


def build_watcher(cfg: Dict[str, Any], client: SolanaClient) -> PoolWatcher:
    program_id = Pubkey.from_string(cfg["RAYDIUM_AMM_PROGRAM_ID"])
    processor = LogsEventProcessor()
    listener = LogsListener(
        wss_endpoint=cfg["SOLANA_NODE_WSS_ENDPOINT"],
        program_id=program_id,
        commitment=cfg["COMMITMENT"],
        reconnect_base_delay=float(cfg["RECONNECT_BASE_DELAY_SECONDS"]),
        reconnect_max_delay=float(cfg["RECONNECT_MAX_DELAY_SECONDS"]),
        max_reconnect_attempts=int(cfg["MAX_RECONNECT_ATTEMPTS"]),
        processor=processor,
    )
    extractor = PoolKeysExtractor(
        program_id=program_id,
        native_mint=Pubkey.from_string(cfg["NATIVE_MINT"]),
        native_decimals=int(cfg["NATIVE_DECIMALS"]),
        processor=processor,
    )
    return PoolWatcher(
        client=client,
        listener=listener,
        signature_cache=SignatureCache(max_size=int(cfg["DEDUP_CACHE_SIZE"]) or None),
        processor=processor,
        extractor=extractor,
        audit_logger=AuditLogger(
            log_to_file=bool(cfg["AUDIT_LOG_TO_FILE"]),
            filepath=cfg["AUDIT_LOG_PATH"],
        ),
        tx_fetch_retries=int(cfg["TX_FETCH_RETRIES"]),
        tx_fetch_retry_delay=float(cfg["TX_FETCH_RETRY_DELAY_SECONDS"]),
        ordered_processing=bool(cfg["ORDERED_PROCESSING"]),
    )


def print_pool(descriptor: PoolDescriptor) -> None:
    print(json.dumps(descriptor.to_dict()), flush=True)


async def main(argv: Optional[list] = None) -> int:
    load_dotenv()  # early .env load

    parser = argparse.ArgumentParser(description="Raydium new pool watcher")
    parser.add_argument("--config", default=DEFAULT_CONFIG_MODULE,
                        help="Python module path (e.g., raypool.config)")
    parser.add_argument("--ordered", action="store_true",
                        help="Process pools one at a time in notification order")
    parser.add_argument("--commitment", choices=("confirmed", "finalized"),
                        help="Override COMMITMENT")
    args = parser.parse_args(argv)

    logger.info("--- Starting main() ---")
    try:
        cfg = load_config(args.config)
    except Exception as e:
        logger.critical(f"Config load failed: {e}")
        return 1

    # Apply CLI overrides
    if args.ordered:
        cfg["ORDERED_PROCESSING"] = True; logger.info("CLI Override: ORDERED_PROCESSING = True")
    if args.commitment:
        cfg["COMMITMENT"] = args.commitment; logger.info(f"CLI Override: COMMITMENT = {args.commitment}")

    client = SolanaClient(cfg["SOLANA_NODE_RPC_ENDPOINT"], commitment=Commitment(cfg["COMMITMENT"]))
    watcher = build_watcher(cfg, client)
    try:
        await watcher.start(print_pool)
    except ReconnectBudgetExhausted:
        return 1
    except asyncio.CancelledError:
        logger.info("Watcher cancelled.")
    finally:
        logger.info("Cleaning up…")
        await client.close()
    return 0


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")


if __name__ == "__main__":
    run()
