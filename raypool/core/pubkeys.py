# raypool/core/pubkeys.py

from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID_SOLDERS  # Renamed to avoid conflict
from spl.token.constants import TOKEN_PROGRAM_ID as TOKEN_PROGRAM_ID_SPL  # Renamed to avoid conflict


class RaydiumAddresses:
    # Raydium Liquidity Pool V4 program
    AMM_V4_PROGRAM_ID = Pubkey.from_string("675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8")

    # OpenBook (Serum v3) order-book program the v4 pools trade against
    OPENBOOK_PROGRAM_ID = Pubkey.from_string("srmqPvymJeFKQ4zGQed1GFppgkRHL9kaELCbyksJtPX")


class SolanaProgramAddresses:
    SYSTEM_PROGRAM_ID: Pubkey = SYSTEM_PROGRAM_ID_SOLDERS
    TOKEN_PROGRAM_ID: Pubkey = TOKEN_PROGRAM_ID_SPL
    WRAPPED_SOL_MINT: Pubkey = Pubkey.from_string(
        "So11111111111111111111111111111111111111112"
    )
