"""Builders for synthetic initialize2 transactions, market accounts and fakes."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from solders.pubkey import Pubkey

from raypool.core.market import MARKET_STATE_LAYOUT_V3
from raypool.core.pubkeys import RaydiumAddresses, SolanaProgramAddresses
from raypool.monitoring.base_listener import BaseLogsListener
from raypool.monitoring.logs_event_processor import LogNotification

TOKEN_PROGRAM = str(SolanaProgramAddresses.TOKEN_PROGRAM_ID)
SYSTEM_PROGRAM = str(SolanaProgramAddresses.SYSTEM_PROGRAM_ID)
WSOL = str(SolanaProgramAddresses.WRAPPED_SOL_MINT)
AMM_PROGRAM = str(RaydiumAddresses.AMM_V4_PROGRAM_ID)
OPENBOOK_PROGRAM = str(RaydiumAddresses.OPENBOOK_PROGRAM_ID)
COMPUTE_BUDGET_PROGRAM = "ComputeBudget111111111111111111111111111111"

INIT_LOG = (
    "Program log: initialize2: InitializeInstruction2 { nonce: 254, open_time: 1717000000, "
    "init_pc_amount: 300000000000, init_coin_amount: 800000000000000 }"
)


def key(n: int) -> str:
    """Deterministic address for test account number n."""
    return str(Pubkey(bytes([n]) * 32))


def token_ix(kind: str, info: Dict[str, Any], program_id: str = TOKEN_PROGRAM) -> Dict[str, Any]:
    return {
        "program": "spl-token",
        "programId": program_id,
        "parsed": {"type": kind, "info": info},
        "stackHeight": 2,
    }


def balance(index: int, mint: str, decimals: int, amount: str = "1000000", owner: Optional[str] = None) -> Dict[str, Any]:
    return {
        "accountIndex": index,
        "mint": mint,
        "owner": owner or key(90),
        "programId": TOKEN_PROGRAM,
        "uiTokenAmount": {
            "amount": amount,
            "decimals": decimals,
            "uiAmount": None,
            "uiAmountString": "0",
        },
    }


@dataclass
class PoolScenario:
    """Addresses of one synthetic pool creation plus builders for its RPC payloads."""
    signature: str = "5pooLinit1111111111111111111111111111111111111"
    pool_id: str = field(default_factory=lambda: key(4))
    authority: str = field(default_factory=lambda: key(5))
    open_orders: str = field(default_factory=lambda: key(6))
    lp_mint: str = field(default_factory=lambda: key(7))
    base_mint: str = field(default_factory=lambda: key(8))
    quote_mint: str = WSOL
    base_vault: str = field(default_factory=lambda: key(10))
    quote_vault: str = field(default_factory=lambda: key(11))
    target_orders: str = field(default_factory=lambda: key(12))
    market_program: str = OPENBOOK_PROGRAM
    market_id: str = field(default_factory=lambda: key(16))
    user: str = field(default_factory=lambda: key(17))
    lp_vault: str = field(default_factory=lambda: key(20))
    lp_decimals: int = 9
    base_decimals: int = 6
    quote_decimals: int = 9

    # market account fields
    market_base_vault: str = field(default_factory=lambda: key(30))
    market_quote_vault: str = field(default_factory=lambda: key(31))
    bids: str = field(default_factory=lambda: key(32))
    asks: str = field(default_factory=lambda: key(33))
    event_queue: str = field(default_factory=lambda: key(34))
    request_queue: str = field(default_factory=lambda: key(35))

    def init_accounts(self) -> List[str]:
        return [
            TOKEN_PROGRAM,
            "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
            SYSTEM_PROGRAM,
            "SysvarRent111111111111111111111111111111111",
            self.pool_id,
            self.authority,
            self.open_orders,
            self.lp_mint,
            self.base_mint,
            self.quote_mint,
            self.base_vault,
            self.quote_vault,
            self.target_orders,
            key(13),
            key(14),
            self.market_program,
            self.market_id,
            self.user,
            key(18),
            key(19),
            self.lp_vault,
        ]

    def inner_instructions(self) -> List[Dict[str, Any]]:
        return [
            token_ix("initializeMint", {
                "mint": self.lp_mint,
                "decimals": self.lp_decimals,
                "mintAuthority": self.authority,
                "rentSysvar": "SysvarRent111111111111111111111111111111111",
            }),
            token_ix("transfer", {
                "source": key(18),
                "destination": self.base_vault,
                "amount": "800000000000000",
                "authority": self.user,
            }),
            token_ix("transfer", {
                "source": key(19),
                "destination": self.quote_vault,
                "amount": "300000000000",
                "authority": self.user,
            }),
            token_ix("mintTo", {
                "mint": self.lp_mint,
                "account": self.lp_vault,
                "amount": "15491933384829",
                "mintAuthority": self.authority,
            }),
        ]

    def pre_token_balances(self) -> List[Dict[str, Any]]:
        balances = []
        if self.base_mint != WSOL:
            balances.append(balance(18, self.base_mint, self.base_decimals))
        if self.quote_mint != WSOL:
            balances.append(balance(19, self.quote_mint, self.quote_decimals))
        else:
            balances.append(balance(19, WSOL, 9))
        if self.base_mint == WSOL:
            balances.append(balance(18, WSOL, 9))
        return balances

    def transaction(
        self,
        instructions: Optional[List[Dict[str, Any]]] = None,
        inner: Optional[List[Dict[str, Any]]] = None,
        pre_balances: Optional[List[Dict[str, Any]]] = None,
        accounts: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """jsonParsed getTransaction result for this pool's creation."""
        if instructions is None:
            instructions = [
                {"programId": COMPUTE_BUDGET_PROGRAM, "accounts": [], "data": "3DdGGhkhJbjm", "stackHeight": None},
                {
                    "programId": AMM_PROGRAM,
                    "accounts": accounts if accounts is not None else self.init_accounts(),
                    "data": "4YMhQ8vg2RRDyy1ALPWtkoRbNs",
                    "stackHeight": None,
                },
            ]
        return {
            "slot": 270000000,
            "blockTime": 1717000000,
            "version": 0,
            "transaction": {
                "signatures": [self.signature],
                "message": {
                    "accountKeys": [],
                    "recentBlockhash": "11111111111111111111111111111111",
                    "instructions": instructions,
                },
            },
            "meta": {
                "err": None,
                "fee": 5000,
                "innerInstructions": [
                    {"index": 1, "instructions": inner if inner is not None else self.inner_instructions()},
                ],
                "preTokenBalances": pre_balances if pre_balances is not None else self.pre_token_balances(),
                "postTokenBalances": [],
                "logMessages": [
                    f"Program {AMM_PROGRAM} invoke [1]",
                    INIT_LOG,
                    f"Program {AMM_PROGRAM} success",
                ],
            },
        }

    def market_account(self) -> bytes:
        return MARKET_STATE_LAYOUT_V3.build({
            "head": b"serum",
            "account_flags": 3,
            "own_address": bytes(Pubkey.from_string(self.market_id)),
            "vault_signer_nonce": 1,
            "base_mint": bytes(Pubkey.from_string(self.base_mint)),
            "quote_mint": bytes(Pubkey.from_string(self.quote_mint)),
            "base_vault": bytes(Pubkey.from_string(self.market_base_vault)),
            "base_deposits_total": 0,
            "base_fees_accrued": 0,
            "quote_vault": bytes(Pubkey.from_string(self.market_quote_vault)),
            "quote_deposits_total": 0,
            "quote_fees_accrued": 0,
            "quote_dust_threshold": 100,
            "request_queue": bytes(Pubkey.from_string(self.request_queue)),
            "event_queue": bytes(Pubkey.from_string(self.event_queue)),
            "bids": bytes(Pubkey.from_string(self.bids)),
            "asks": bytes(Pubkey.from_string(self.asks)),
            "base_lot_size": 100000,
            "quote_lot_size": 100,
            "fee_rate_bps": 0,
            "referrer_rebates_accrued": 0,
            "tail": b"padding",
        })

    def notification(self, logs: Optional[List[str]] = None, err: Any = None) -> LogNotification:
        return LogNotification(
            signature=self.signature,
            logs=logs if logs is not None else [f"Program {AMM_PROGRAM} invoke [1]", INIT_LOG],
            err=err,
            slot=270000000,
        )


class FakeSolanaClient:
    """Stands in for SolanaClient with canned transactions and accounts."""

    def __init__(self, transactions=None, accounts=None):
        self.transactions: Dict[str, Any] = dict(transactions or {})
        self.accounts: Dict[Pubkey, bytes] = dict(accounts or {})
        self.transaction_calls: List[str] = []
        self.account_calls: List[Pubkey] = []

    async def get_transaction_json(self, signature: str):
        self.transaction_calls.append(signature)
        value = self.transactions.get(signature)
        # a list means "return these in turn", e.g. [None, payload]
        if isinstance(value, list):
            return value.pop(0) if value else None
        return value

    async def get_account_data(self, pubkey: Pubkey):
        self.account_calls.append(pubkey)
        return self.accounts.get(pubkey)

    async def close(self):
        pass


class FakeListener(BaseLogsListener):
    """Delivers a fixed list of notifications, then returns."""

    def __init__(self, notifications):
        super().__init__()
        self.notifications = list(notifications)

    async def listen(self, on_event):
        for notification in self.notifications:
            if self.stopped:
                break
            await on_event(notification)
