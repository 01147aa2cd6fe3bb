from typing import List, Optional, Sequence
import logging

from redflag.sources.pool_pipeline.config.settings import LOG_CHUNK_TIERS, MIN_BLOCK
from redflag.utils.log_utils import walk_block_ranges
from redflag.utils.types import ChainDataProvider, RawEvent

logger = logging.getLogger(__name__)


def clamp_from_block(head: int, depth: int, min_block: int = MIN_BLOCK) -> int:
    """First block of a `depth`-block window ending at `head`, never below genesis."""
    return max(min_block, head - depth + 1)


class RangeLogFetcher:
    """
    Chunked eth_getLogs over an inclusive block range.

    The range is walked backward from `to_block` in chunks of `chunk_tiers[0]`.
    A chunk that errors is split with the next (smaller) tier and each piece
    is retried on its own. A piece that still fails at the last tier is
    skipped: at this layer a gap is indistinguishable from "no events".
    """

    def __init__(self, chunk_tiers: Sequence[int] = LOG_CHUNK_TIERS):
        tiers = tuple(int(t) for t in chunk_tiers)
        if not tiers:
            raise ValueError("At least one chunk size tier is required")
        if any(t <= 0 for t in tiers):
            raise ValueError(f"Chunk tiers must be positive: {tiers}")
        if any(b >= a for a, b in zip(tiers, tiers[1:])):
            raise ValueError(f"Chunk tiers must be strictly decreasing: {tiers}")
        self.chunk_tiers = tiers

    async def fetch(
        self,
        provider: ChainDataProvider,
        address: str,
        topics: Sequence[str],
        from_block: int,
        to_block: int,
        stop_after: Optional[int] = None,
    ) -> List[RawEvent]:
        from_block = max(MIN_BLOCK, from_block)
        if from_block > to_block:
            return []

        logger.info(
            f"scan.start provider={provider.name} blocks={from_block}-{to_block} "
            f"chunk={self.chunk_tiers[0]}"
        )
        events: List[RawEvent] = []
        for lo, hi in walk_block_ranges(from_block, to_block, self.chunk_tiers[0]):
            events.extend(await self._fetch_chunk(provider, address, topics, lo, hi, tier=0))
            if stop_after is not None and len(events) >= stop_after:
                logger.info(f"scan.stop_early provider={provider.name} at_block={lo} events={len(events)}")
                break

        logger.info(f"scan.done provider={provider.name} events={len(events)}")
        return events

    async def _fetch_chunk(
        self,
        provider: ChainDataProvider,
        address: str,
        topics: Sequence[str],
        lo: int,
        hi: int,
        tier: int,
    ) -> List[RawEvent]:
        try:
            logs = await provider.get_logs(address, topics, lo, hi)
        except Exception as exc:
            next_tier = tier + 1
            if next_tier >= len(self.chunk_tiers):
                logger.debug(f"--[!] Skipping blocks {lo}-{hi} on {provider.name}: {exc}")
                return []
            logger.debug(
                f"--[!] Chunk {lo}-{hi} failed on {provider.name} ({exc}); "
                f"retrying in chunks of {self.chunk_tiers[next_tier]}"
            )
            out: List[RawEvent] = []
            for sub_lo, sub_hi in walk_block_ranges(lo, hi, self.chunk_tiers[next_tier]):
                out.extend(await self._fetch_chunk(provider, address, topics, sub_lo, sub_hi, next_tier))
            return out

        in_range = [ev for ev in logs if lo <= ev.block_number <= hi]
        if len(in_range) != len(logs):
            logger.warning(
                f"Dropped {len(logs) - len(in_range)} log(s) outside blocks {lo}-{hi} from {provider.name}"
            )
        if in_range:
            logger.debug(f"----Fetched {len(in_range)} logs from blocks {lo} to {hi}")
        return in_range
