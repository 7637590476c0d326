# raypool/core/market.py

import hashlib
from dataclasses import dataclass
from typing import Any

# --- Solana/Borsh Imports ---
from borsh_construct import CStruct, U64
from construct import Bytes, ConstructError
from solders.pubkey import Pubkey

from .exceptions import MarketDecodeError

PUBKEY = Bytes(32)

# --- OpenBook / Serum v3 Market Layout ---
# 388 bytes: 5-byte "serum" head, the market state, 7-byte "padding" tail.
MARKET_STATE_LAYOUT_V3 = CStruct(
    "head" / Bytes(5),
    "account_flags" / U64,
    "own_address" / PUBKEY,
    "vault_signer_nonce" / U64,
    "base_mint" / PUBKEY,
    "quote_mint" / PUBKEY,
    "base_vault" / PUBKEY,
    "base_deposits_total" / U64,
    "base_fees_accrued" / U64,
    "quote_vault" / PUBKEY,
    "quote_deposits_total" / U64,
    "quote_fees_accrued" / U64,
    "quote_dust_threshold" / U64,
    "request_queue" / PUBKEY,
    "event_queue" / PUBKEY,
    "bids" / PUBKEY,
    "asks" / PUBKEY,
    "base_lot_size" / U64,
    "quote_lot_size" / U64,
    "fee_rate_bps" / U64,
    "referrer_rebates_accrued" / U64,
    "tail" / Bytes(7),
)

MARKET_AUTHORITY_MAX_NONCE = 100
PDA_MARKER = b"ProgramDerivedAddress"


@dataclass(frozen=True)
class MarketLayout:
    """The address fields of a decoded market account."""
    own_address: Pubkey
    vault_signer_nonce: int
    base_mint: Pubkey
    quote_mint: Pubkey
    base_vault: Pubkey
    quote_vault: Pubkey
    request_queue: Pubkey
    event_queue: Pubkey
    bids: Pubkey
    asks: Pubkey
    base_lot_size: int
    quote_lot_size: int


def decode_market_account(raw_data: bytes) -> MarketLayout:
    """Decodes raw market account bytes; raises MarketDecodeError on short or bad data."""
    expected = MARKET_STATE_LAYOUT_V3.sizeof()
    if len(raw_data) < expected:
        raise MarketDecodeError(
            f"Market account data is {len(raw_data)} bytes, expected {expected}"
        )
    try:
        parsed: Any = MARKET_STATE_LAYOUT_V3.parse(raw_data[:expected])
    except ConstructError as e:
        raise MarketDecodeError(f"Failed to parse market account: {e}") from e

    return MarketLayout(
        own_address=Pubkey(parsed.own_address),
        vault_signer_nonce=parsed.vault_signer_nonce,
        base_mint=Pubkey(parsed.base_mint),
        quote_mint=Pubkey(parsed.quote_mint),
        base_vault=Pubkey(parsed.base_vault),
        quote_vault=Pubkey(parsed.quote_vault),
        request_queue=Pubkey(parsed.request_queue),
        event_queue=Pubkey(parsed.event_queue),
        bids=Pubkey(parsed.bids),
        asks=Pubkey(parsed.asks),
        base_lot_size=parsed.base_lot_size,
        quote_lot_size=parsed.quote_lot_size,
    )


def derive_market_authority(market_program_id: Pubkey, market_id: Pubkey) -> Pubkey:
    """
    Finds the vault signer of a market: the first nonce in 0..99 for which
    [market_id, nonce, 7 zero bytes] is a valid program address.
    """
    program_bytes = bytes(market_program_id)
    for nonce in range(MARKET_AUTHORITY_MAX_NONCE):
        seeds = bytes(market_id) + bytes([nonce]) + bytes(7)
        candidate = Pubkey(hashlib.sha256(seeds + program_bytes + PDA_MARKER).digest())
        # program addresses must be off the ed25519 curve
        if not candidate.is_on_curve():
            return candidate
    raise MarketDecodeError(f"Could not derive market authority for {market_id}")
