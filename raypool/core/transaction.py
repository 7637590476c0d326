# raypool/core/transaction.py
"""
Typed view of a `getTransaction` result fetched with the jsonParsed encoding.

Only the pieces the pool extractor needs are kept: top-level instructions,
inner instruction groups, pre-transaction token balances and log messages.
Instructions decoded by the node are mapped onto a closed set of variants so
callers match on types instead of on the node's "type" strings.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from solders.pubkey import Pubkey

from .exceptions import TransactionDecodeError


@dataclass(frozen=True)
class InitializeMint:
    program_id: Pubkey
    mint: Pubkey
    decimals: int


@dataclass(frozen=True)
class MintTo:
    program_id: Pubkey
    mint: Pubkey
    account: Pubkey
    amount: int


@dataclass(frozen=True)
class Transfer:
    program_id: Pubkey
    source: Pubkey
    destination: Pubkey
    amount: int


@dataclass(frozen=True)
class PartiallyDecodedInstruction:
    """An instruction the node could not parse: program, accounts, raw data."""
    program_id: Pubkey
    accounts: Tuple[Pubkey, ...]
    data: str


@dataclass(frozen=True)
class OtherParsedInstruction:
    """A parsed instruction of a kind the pipeline does not use."""
    program_id: Pubkey
    program: str
    kind: Optional[str]


ParsedInstruction = Union[
    InitializeMint,
    MintTo,
    Transfer,
    PartiallyDecodedInstruction,
    OtherParsedInstruction,
]


@dataclass(frozen=True)
class InnerInstructionGroup:
    index: int
    instructions: Tuple[ParsedInstruction, ...]


@dataclass(frozen=True)
class TokenBalance:
    account_index: int
    mint: Pubkey
    decimals: int
    amount: int
    owner: Optional[Pubkey] = None


@dataclass(frozen=True)
class ParsedTransaction:
    signature: str
    slot: Optional[int]
    block_time: Optional[int]
    instructions: Tuple[ParsedInstruction, ...]
    inner_instructions: Tuple[InnerInstructionGroup, ...]
    pre_token_balances: Tuple[TokenBalance, ...]
    log_messages: Tuple[str, ...] = field(default_factory=tuple)
    err: Any = None

    def iter_inner_instructions(self):
        """Yields inner instructions group by group, in delivery order."""
        for group in self.inner_instructions:
            yield from group.instructions


def _pubkey(value: Any, what: str) -> Pubkey:
    if not isinstance(value, str):
        raise TransactionDecodeError(f"{what} is not an address: {value!r}")
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise TransactionDecodeError(f"{what} is not a valid address: {value!r}") from e


def _int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise TransactionDecodeError(f"{what} is not an integer: {value!r}") from e


def parse_instruction(raw: Dict[str, Any]) -> ParsedInstruction:
    """Maps one jsonParsed instruction object onto its variant."""
    if not isinstance(raw, dict):
        raise TransactionDecodeError(f"Instruction is not an object: {raw!r}")
    program_id = _pubkey(raw.get("programId"), "programId")

    parsed = raw.get("parsed")
    if parsed is None:
        accounts = raw.get("accounts") or []
        return PartiallyDecodedInstruction(
            program_id=program_id,
            accounts=tuple(_pubkey(a, "instruction account") for a in accounts),
            data=raw.get("data") or "",
        )

    program = raw.get("program") or ""
    # e.g. memo instructions parse to a bare string
    if not isinstance(parsed, dict):
        return OtherParsedInstruction(program_id=program_id, program=program, kind=None)

    kind = parsed.get("type")
    info = parsed.get("info") or {}
    if kind == "initializeMint":
        return InitializeMint(
            program_id=program_id,
            mint=_pubkey(info.get("mint"), "initializeMint.mint"),
            decimals=_int(info.get("decimals"), "initializeMint.decimals"),
        )
    if kind == "mintTo":
        return MintTo(
            program_id=program_id,
            mint=_pubkey(info.get("mint"), "mintTo.mint"),
            account=_pubkey(info.get("account"), "mintTo.account"),
            amount=_int(info.get("amount"), "mintTo.amount"),
        )
    if kind == "transfer" and "destination" in info:
        # System transfers carry "lamports", token transfers carry "amount".
        amount = info.get("amount", info.get("lamports", 0))
        return Transfer(
            program_id=program_id,
            source=_pubkey(info.get("source"), "transfer.source"),
            destination=_pubkey(info.get("destination"), "transfer.destination"),
            amount=_int(amount, "transfer.amount"),
        )
    return OtherParsedInstruction(program_id=program_id, program=program, kind=kind)


def _parse_token_balance(raw: Dict[str, Any]) -> TokenBalance:
    ui_amount = raw.get("uiTokenAmount") or {}
    owner = raw.get("owner")
    return TokenBalance(
        account_index=_int(raw.get("accountIndex"), "accountIndex"),
        mint=_pubkey(raw.get("mint"), "token balance mint"),
        decimals=_int(ui_amount.get("decimals"), "uiTokenAmount.decimals"),
        amount=_int(ui_amount.get("amount", 0), "uiTokenAmount.amount"),
        owner=_pubkey(owner, "token balance owner") if owner else None,
    )


def parse_transaction(payload: Dict[str, Any]) -> ParsedTransaction:
    """
    Builds a ParsedTransaction from the `result` of a jsonParsed
    getTransaction call.

    Raises:
        TransactionDecodeError: the payload is missing its message or meta,
            or holds values of the wrong type.
    """
    if not isinstance(payload, dict):
        raise TransactionDecodeError("Transaction payload is not an object")

    tx = payload.get("transaction")
    if not isinstance(tx, dict):
        raise TransactionDecodeError("Transaction payload has no 'transaction' object")
    meta = payload.get("meta")
    # Some serializers nest the encoded transaction and its meta one level deeper.
    if "message" not in tx and isinstance(tx.get("transaction"), dict):
        meta = meta if meta is not None else tx.get("meta")
        tx = tx["transaction"]

    message = tx.get("message")
    if not isinstance(message, dict):
        raise TransactionDecodeError("Transaction has no message")
    if not isinstance(meta, dict):
        raise TransactionDecodeError("Transaction has no status meta")

    signatures = tx.get("signatures") or []
    instructions = tuple(parse_instruction(ix) for ix in message.get("instructions") or [])

    groups: List[InnerInstructionGroup] = []
    for group in meta.get("innerInstructions") or []:
        groups.append(
            InnerInstructionGroup(
                index=_int(group.get("index"), "innerInstructions.index"),
                instructions=tuple(
                    parse_instruction(ix) for ix in group.get("instructions") or []
                ),
            )
        )

    balances = tuple(
        _parse_token_balance(b) for b in meta.get("preTokenBalances") or []
    )

    return ParsedTransaction(
        signature=signatures[0] if signatures else "",
        slot=payload.get("slot"),
        block_time=payload.get("blockTime"),
        instructions=instructions,
        inner_instructions=tuple(groups),
        pre_token_balances=balances,
        log_messages=tuple(meta.get("logMessages") or []),
        err=meta.get("err"),
    )
