# raypool/config.py

import os
from dotenv import load_dotenv

# Load .env from the project root
script_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(script_dir)
dotenv_path = os.path.join(project_root, '.env')
load_dotenv(dotenv_path=dotenv_path)

# --- Solana Node Connection (Required - MUST be in .env or environment) ---
SOLANA_NODE_RPC_ENDPOINT = os.getenv("SOLANA_NODE_RPC_ENDPOINT", "https://api.mainnet-beta.solana.com") # Default public RPC
SOLANA_NODE_WSS_ENDPOINT = os.getenv("SOLANA_NODE_WSS_ENDPOINT", "wss://api.mainnet-beta.solana.com") # Default public WSS
# Public endpoints rate-limit getTransaction quickly; use a private RPC provider via .env

# --- Watched Program ---
RAYDIUM_AMM_PROGRAM_ID = os.getenv("RAYDIUM_AMM_PROGRAM_ID", "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8")
COMMITMENT = os.getenv("COMMITMENT", "confirmed")  # 'confirmed' or 'finalized'

# --- Native Token ---
NATIVE_MINT = os.getenv("NATIVE_MINT", "So11111111111111111111111111111111111111112")
NATIVE_DECIMALS = 9

# --- Reconnect Settings ---
RECONNECT_BASE_DELAY_SECONDS = 1.0
RECONNECT_MAX_DELAY_SECONDS = 30.0
MAX_RECONNECT_ATTEMPTS = 5

# --- Pipeline Settings ---
DEDUP_CACHE_SIZE = 0  # 0 keeps every signature for the whole session
TX_FETCH_RETRIES = 3
TX_FETCH_RETRY_DELAY_SECONDS = 1.0
ORDERED_PROCESSING = False  # True: one pool at a time, in notification order

# --- Audit Log ---
AUDIT_LOG_TO_FILE = False
AUDIT_LOG_PATH = "pool_audit.log"
