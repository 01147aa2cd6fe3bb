# redflag/utils/log_utils.py
from typing import Iterator, Mapping

from hexbytes import HexBytes
from web3 import Web3

from redflag.utils.clean_util import normalize_tx_hash
from redflag.utils.types import RawEvent


def _to_hex(value) -> str:
    if isinstance(value, (bytes, bytearray, HexBytes)):
        return Web3.to_hex(value)
    return str(value)


def sanitize_log(log: Mapping) -> RawEvent:
    """Convert a Web3 log receipt into a plain, JSON-safe RawEvent."""
    tx_hash = log.get("transactionHash")
    return RawEvent(
        address=str(log["address"]).lower(),
        topics=tuple(_to_hex(t).lower() for t in log.get("topics", [])),
        data=_to_hex(log.get("data", b"")),
        block_number=int(log["blockNumber"]),
        tx_hash=normalize_tx_hash(_to_hex(tx_hash)) if tx_hash is not None else None,
        log_index=int(log.get("logIndex") or 0),
    )


def walk_block_ranges(start: int, end: int, step: int) -> Iterator[tuple[int, int]]:
    """Inclusive, non-overlapping [lo, hi] chunks covering start..end, newest first.

    Chunks are anchored at `end`, so the short chunk (if any) is the oldest one.
    """
    if step <= 0:
        raise ValueError(f"Chunk size must be positive, got {step}")
    if start > end:
        return
    hi = end
    while hi >= start:
        lo = max(start, hi - step + 1)
        yield lo, hi
        hi = lo - 1
