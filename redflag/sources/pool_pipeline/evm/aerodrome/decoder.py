# decoder.py
# --------------------------------------------------------------
# Decode factory PoolCreated logs into plain dicts
# --------------------------------------------------------------
from typing import Optional
import logging

from eth_abi import abi
from eth_utils import event_abi_to_log_topic
from hexbytes import HexBytes
from web3 import Web3

from redflag.utils.types import RawEvent

logger = logging.getLogger(__name__)


def _normalize(value, abi_type: str):
    if abi_type == "address":
        return Web3.to_checksum_address(value)
    return value


def decode_event(event_abi: dict, event: RawEvent) -> dict:
    """
    Decode a RawEvent against an event ABI.

    Indexed inputs come from topics[1:], the rest from the data payload.
    Unnamed inputs are keyed by position ("arg4").
    """
    topic0 = Web3.to_hex(event_abi_to_log_topic(event_abi)).lower()
    if not event.topics or event.topics[0].lower() != topic0:
        raise ValueError(f"topic0 mismatch for {event_abi['name']} at block {event.block_number}")

    named = [(inp.get("name") or f"arg{pos}", inp) for pos, inp in enumerate(event_abi["inputs"])]
    indexed = [(name, inp) for name, inp in named if inp.get("indexed")]
    plain = [(name, inp) for name, inp in named if not inp.get("indexed")]

    if len(event.topics) - 1 != len(indexed):
        raise ValueError(
            f"expected {len(indexed)} indexed topics, got {len(event.topics) - 1}"
        )

    args = {}
    for (name, inp), topic in zip(indexed, event.topics[1:]):
        (value,) = abi.decode([inp["type"]], bytes(HexBytes(topic)))
        args[name] = _normalize(value, inp["type"])

    values = abi.decode([inp["type"] for _, inp in plain], bytes(HexBytes(event.data)))
    for (name, inp), value in zip(plain, values):
        args[name] = _normalize(value, inp["type"])
    return args


def decode_pool_created(event_abi: dict, event: RawEvent) -> Optional[dict]:
    """token0/token1/stable/pool for one PoolCreated log, or None if it won't decode."""
    try:
        args = decode_event(event_abi, event)
    except Exception as exc:
        logger.warning(f"Could not decode log {event.tx_hash}:{event.log_index}: {exc}")
        return None
    return {
        "token0": args["token0"],
        "token1": args["token1"],
        "stable": bool(args.get("stable", False)),
        "pool": args["pool"],
    }
