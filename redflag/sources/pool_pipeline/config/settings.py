import os
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


BASE_RPC_URLS = _csv(os.getenv(
    "BASE_RPC_URLS",
    "https://base.llamarpc.com,https://1rpc.io/base,https://base.drpc.org",
))
RPC_TIMEOUT_SECONDS = int(os.getenv("RPC_TIMEOUT_SECONDS", "10"))
RPC_HEAD_MAX_TRIES = int(os.getenv("RPC_HEAD_MAX_TRIES", "2"))

# Aerodrome classic (v2-style) pool factory on Base
POOL_FACTORY_ADDRESS = os.getenv(
    "POOL_FACTORY_ADDRESS", "0x420DD381b31aEf6683db6B902084cB0FFEcE40Da"
)

# Block span per eth_getLogs call; a failed chunk is retried with the next tier
LOG_CHUNK_TIERS = tuple(int(v) for v in _csv(os.getenv("LOG_CHUNK_TIERS", "2000,500,100")))
MIN_BLOCK = 1

POOL_SCAN_DEPTH = int(os.getenv("POOL_SCAN_DEPTH", "100000"))
CREATOR_SCAN_DEPTH = int(os.getenv("CREATOR_SCAN_DEPTH", "200000"))
POOL_RESULT_LIMIT = int(os.getenv("POOL_RESULT_LIMIT", "15"))
POOLS_CACHE_TTL_SECONDS = float(os.getenv("POOLS_CACHE_TTL_SECONDS", "60"))
POOLS_CACHE_MAXSIZE = int(os.getenv("POOLS_CACHE_MAXSIZE", "16"))
LOOKUP_CONCURRENCY = int(os.getenv("LOOKUP_CONCURRENCY", "10"))

ETHOS_API_URL = os.getenv("ETHOS_API_URL", "https://api.ethos.network/api/v2")
ETHOS_CLIENT_NAME = os.getenv("ETHOS_CLIENT_NAME", "redflag")
REPUTATION_TIMEOUT_SECONDS = float(os.getenv("REPUTATION_TIMEOUT_SECONDS", "5"))

EXPLORER_URL = os.getenv("EXPLORER_URL", "https://basescan.org")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ERC20_SYMBOL_ABI = [
    { "name": "symbol", "outputs": [ { "type": "string" } ],
      "inputs": [], "stateMutability": "view", "type": "function"},
]
