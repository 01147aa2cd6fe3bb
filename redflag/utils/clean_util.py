import re
import time
from typing import Optional

from redflag.utils.constants import TIME_AGO_UNITS

_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def short_address(address: str) -> str:
    """Display fallback for tokens whose symbol() can't be read."""
    return address[:6] + "..."


def clean_symbol(symbol, address: str) -> str:
    if not isinstance(symbol, str):
        return short_address(address)
    cleaned = symbol.replace("\x00", "").strip()
    return cleaned or short_address(address)


def normalize_tx_hash(tx_hash: Optional[str]) -> Optional[str]:
    if not tx_hash:
        return None
    if not tx_hash.startswith("0x"):
        tx_hash = "0x" + tx_hash
    return tx_hash.lower() if _HASH_RE.match(tx_hash) else None


def time_ago(timestamp: int, now: Optional[float] = None) -> str:
    now = int(now if now is not None else time.time())
    diff = max(0, now - int(timestamp))
    for seconds, unit in TIME_AGO_UNITS:
        if diff >= seconds:
            return f"{diff // seconds}{unit} ago"
    return f"{diff}s ago"
