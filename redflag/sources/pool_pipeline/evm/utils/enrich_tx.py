import asyncio
import logging
from collections import Counter
from typing import Iterable, Optional

from redflag.utils.constants import ZERO_ADDRESS
from redflag.utils.types import ChainDataProvider, RawEvent

logger = logging.getLogger(__name__)


async def get_transaction_sender(provider: ChainDataProvider, tx_hash: Optional[str]) -> str:
    """
    The EOA that sent the tx, lowercased. This is the pool's creator: the
    log's own `address` is always the factory.

    Tries eth_getTransactionByHash, then the receipt; ZERO_ADDRESS if both fail.
    """
    if not tx_hash:
        return ZERO_ADDRESS
    for fetch in (provider.get_transaction, provider.get_transaction_receipt):
        try:
            tx = await fetch(tx_hash)
            sender = tx.get("from") if tx else None
            if sender:
                return str(sender).lower()
        except Exception as exc:
            logger.debug(f"{fetch.__name__} failed for {tx_hash} on {provider.name}: {exc}")
    logger.warning(f"sender.unresolved tx={tx_hash} provider={provider.name}")
    return ZERO_ADDRESS


async def resolve_senders(
    provider: ChainDataProvider,
    events: Iterable[RawEvent],
    concurrency: int,
) -> dict[str, str]:
    """tx_hash -> sender for every distinct tx hash among `events`."""
    hashes = list(dict.fromkeys(ev.tx_hash for ev in events if ev.tx_hash))
    sem = asyncio.Semaphore(max(1, concurrency))

    async def one(h: str) -> str:
        async with sem:
            return await get_transaction_sender(provider, h)

    senders = await asyncio.gather(*(one(h) for h in hashes))
    return dict(zip(hashes, senders))


def creator_of(event: RawEvent, senders: dict[str, str]) -> str:
    if not event.tx_hash:
        return ZERO_ADDRESS
    return senders.get(event.tx_hash, ZERO_ADDRESS)


def count_creators(events: Iterable[RawEvent], senders: dict[str, str]) -> Counter:
    """Deployments per lowercased creator; unresolved creators are not counted."""
    counts: Counter = Counter()
    for ev in events:
        creator = creator_of(ev, senders).lower()
        if creator != ZERO_ADDRESS:
            counts[creator] += 1
    return counts
