# raypool/pools/extractor.py
"""
Rebuilds Raydium v4 pool keys from the transaction that ran initialize2.

The AMM instruction only names accounts by position, so the pool, vault and
market addresses come from a fixed index table. LP decimals and the LP vault
come from the token-program side effects the AMM performs (initializeMint and
mintTo on the LP mint), and the deposit transfers into both vaults must be
present for the transaction to count as a pool creation. Token decimals come
from the pre-transaction token balances.
"""

from typing import Callable, Optional, Type, TypeVar

from solders.pubkey import Pubkey

from ..core.constants import MARKET_VERSION, SOL_DECIMALS
from ..core.exceptions import (
    MissingBalanceSnapshot,
    MissingInnerInstruction,
    MissingInstruction,
    UnsupportedInstructionShape,
)
from ..core.pubkeys import RaydiumAddresses, SolanaProgramAddresses
from ..core.transaction import (
    InitializeMint,
    MintTo,
    ParsedTransaction,
    PartiallyDecodedInstruction,
    Transfer,
)
from ..monitoring.logs_event_processor import LogsEventProcessor
from ..utils.logger import get_logger
from .base import RawPoolKeys

logger = get_logger(__name__)

# Account positions in the AMM v4 initialize2 instruction.
INITIALIZE2_ACCOUNT_INDEX = {
    "id": 4,
    "authority": 5,
    "open_orders": 6,
    "lp_mint": 7,
    "base_mint": 8,
    "quote_mint": 9,
    "base_vault": 10,
    "quote_vault": 11,
    "target_orders": 12,
    "market_program_id": 15,
    "market_id": 16,
}
INITIALIZE2_MIN_ACCOUNTS = max(INITIALIZE2_ACCOUNT_INDEX.values()) + 1

T = TypeVar("T")


def _first_inner(
    tx: ParsedTransaction,
    kind: Type[T],
    predicate: Callable[[T], bool],
) -> Optional[T]:
    # First match in delivery order wins.
    for ix in tx.iter_inner_instructions():
        if isinstance(ix, kind) and predicate(ix):
            return ix
    return None


class PoolKeysExtractor:
    def __init__(
        self,
        program_id: Pubkey = RaydiumAddresses.AMM_V4_PROGRAM_ID,
        native_mint: Pubkey = SolanaProgramAddresses.WRAPPED_SOL_MINT,
        native_decimals: int = SOL_DECIMALS,
        token_program_id: Pubkey = SolanaProgramAddresses.TOKEN_PROGRAM_ID,
        processor: Optional[LogsEventProcessor] = None,
    ):
        self.program_id = program_id
        self.native_mint = native_mint
        self.native_decimals = native_decimals
        self.token_program_id = token_program_id
        self.processor = processor if processor is not None else LogsEventProcessor()

    def find_init_instruction(self, tx: ParsedTransaction) -> PartiallyDecodedInstruction:
        for ix in tx.instructions:
            if isinstance(ix, PartiallyDecodedInstruction) and ix.program_id == self.program_id:
                return ix
        raise MissingInstruction(
            f"No {self.program_id} instruction in transaction {tx.signature}"
        )

    def init_accounts(self, ix: PartiallyDecodedInstruction) -> dict:
        """Maps the instruction's positional accounts onto their roles."""
        if len(ix.accounts) < INITIALIZE2_MIN_ACCOUNTS:
            raise UnsupportedInstructionShape(
                f"initialize2 has {len(ix.accounts)} accounts, "
                f"expected at least {INITIALIZE2_MIN_ACCOUNTS}"
            )
        return {role: ix.accounts[i] for role, i in INITIALIZE2_ACCOUNT_INDEX.items()}

    def _decimals_of(self, tx: ParsedTransaction, mint: Pubkey) -> int:
        for balance in tx.pre_token_balances:
            if balance.mint == mint:
                return balance.decimals
        raise MissingBalanceSnapshot(
            f"No pre-transaction token balance for mint {mint} in {tx.signature}"
        )

    def extract(self, tx: ParsedTransaction) -> RawPoolKeys:
        """
        Raises:
            MissingInstruction, UnsupportedInstructionShape,
            MissingInnerInstruction, MissingBalanceSnapshot
        """
        accounts = self.init_accounts(self.find_init_instruction(tx))
        lp_mint = accounts["lp_mint"]
        base_mint = accounts["base_mint"]
        quote_mint = accounts["quote_mint"]
        base_vault = accounts["base_vault"]
        quote_vault = accounts["quote_vault"]

        base_and_quote_swapped = base_mint == self.native_mint

        lp_mint_init = _first_inner(tx, InitializeMint, lambda ix: ix.mint == lp_mint)
        if lp_mint_init is None:
            raise MissingInnerInstruction(f"initializeMint for lp mint {lp_mint} not found")

        lp_mint_to = _first_inner(tx, MintTo, lambda ix: ix.mint == lp_mint)
        if lp_mint_to is None:
            raise MissingInnerInstruction(f"mintTo for lp mint {lp_mint} not found")

        base_transfer = _first_inner(tx, Transfer, self._token_transfer_to(base_vault))
        if base_transfer is None:
            raise MissingInnerInstruction(f"transfer into base vault {base_vault} not found")

        quote_transfer = _first_inner(tx, Transfer, self._token_transfer_to(quote_vault))
        if quote_transfer is None:
            raise MissingInnerInstruction(f"transfer into quote vault {quote_vault} not found")

        if base_and_quote_swapped:
            base_decimals = self.native_decimals
            quote_decimals = self._decimals_of(tx, quote_mint)
        else:
            base_decimals = self._decimals_of(tx, base_mint)
            if quote_mint == self.native_mint:
                quote_decimals = self.native_decimals
            else:
                quote_decimals = self._decimals_of(tx, quote_mint)

        init_log = self.processor.parse_init_log(tx.log_messages)

        keys = RawPoolKeys(
            id=accounts["id"],
            program_id=self.program_id,
            authority=accounts["authority"],
            open_orders=accounts["open_orders"],
            target_orders=accounts["target_orders"],
            base_mint=base_mint,
            quote_mint=quote_mint,
            base_vault=base_vault,
            quote_vault=quote_vault,
            withdraw_queue=SolanaProgramAddresses.SYSTEM_PROGRAM_ID,
            lp_vault=lp_mint_to.account,
            lp_mint=lp_mint,
            lp_decimals=lp_mint_init.decimals,
            base_decimals=base_decimals,
            quote_decimals=quote_decimals,
            market_version=MARKET_VERSION,
            market_program_id=accounts["market_program_id"],
            market_id=accounts["market_id"],
            base_and_quote_swapped=base_and_quote_swapped,
            open_time=init_log.open_time if init_log else None,
        )
        logger.debug(
            f"Extracted pool {keys.id} (base={base_mint}, quote={quote_mint}, "
            f"swapped={base_and_quote_swapped}) from {tx.signature}"
        )
        return keys

    def _token_transfer_to(self, destination: Pubkey) -> Callable[[Transfer], bool]:
        def matches(ix: Transfer) -> bool:
            return ix.destination == destination and ix.program_id == self.token_program_id
        return matches
