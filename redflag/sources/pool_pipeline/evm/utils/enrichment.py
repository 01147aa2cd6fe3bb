import asyncio
import logging
from collections import Counter
from typing import Dict, List, Sequence

from redflag.sources.pool_pipeline.config.settings import (
    EXPLORER_URL,
    LOOKUP_CONCURRENCY,
    POOL_RESULT_LIMIT,
)
from redflag.sources.pool_pipeline.evm.aerodrome.config import POOL_CREATED_ABI
from redflag.sources.pool_pipeline.evm.aerodrome.decoder import decode_pool_created
from redflag.sources.pool_pipeline.evm.utils.blocks import BlockTimestampResolver
from redflag.sources.pool_pipeline.evm.utils.enrich_tx import (
    count_creators,
    creator_of,
    resolve_senders,
)
from redflag.sources.pool_pipeline.evm.utils.token_meta import SymbolResolver
from redflag.sources.reputation.ethos_client import EthosClient
from redflag.utils.constants import ZERO_ADDRESS
from redflag.utils.types import (
    ChainDataProvider,
    CreatorPool,
    EnrichedPool,
    RawEvent,
    ReputationResult,
)

log = logging.getLogger(__name__)


def sort_events(events: Sequence[RawEvent]) -> List[RawEvent]:
    """Newest block first; equal blocks keep discovery order."""
    return sorted(events, key=lambda ev: ev.block_number, reverse=True)


class ReputationMemo:
    """One reputation call per creator within a single enrichment pass."""

    def __init__(self, client: EthosClient):
        self.client = client
        self._pending: Dict[str, asyncio.Future] = {}

    async def lookup(self, creator: str) -> ReputationResult:
        key = creator.lower()
        if key not in self._pending:
            self._pending[key] = asyncio.ensure_future(self.client.lookup(key))
        return await self._pending[key]


class PoolEnricher:
    """
    Turns the raw PoolCreated logs of one scan into EnrichedPool records.

    Sender resolution runs over the whole window because the first-pool flag
    is defined against every event in it. Symbols, reputation and block
    timestamps are only fetched for the `limit` most recent pools.
    """

    def __init__(
        self,
        reputation: EthosClient,
        limit: int = POOL_RESULT_LIMIT,
        concurrency: int = LOOKUP_CONCURRENCY,
        explorer_url: str = EXPLORER_URL,
    ):
        self.reputation = reputation
        self.limit = limit
        self.concurrency = concurrency
        self.explorer_url = explorer_url.rstrip("/")

    async def enrich(
        self,
        provider: ChainDataProvider,
        events: Sequence[RawEvent],
        event_abi: dict = POOL_CREATED_ABI,
    ) -> List[EnrichedPool]:
        ordered = sort_events(events)
        senders = await resolve_senders(provider, ordered, self.concurrency)
        counts = count_creators(ordered, senders)

        symbols = SymbolResolver(provider)
        blocks = BlockTimestampResolver(provider)
        reputation = ReputationMemo(self.reputation)

        pools = await asyncio.gather(*(
            self._enrich_one(item, senders, counts, symbols, blocks, reputation)
            for item in self._decodable(ordered, event_abi)[: self.limit]
        ))
        log.info(f"enrich.done window={len(ordered)} creators={len(counts)} pools={len(pools)}")
        return list(pools)

    def _decodable(self, events: Sequence[RawEvent], event_abi: dict) -> List[tuple[RawEvent, dict]]:
        out = []
        for ev in events:
            args = decode_pool_created(event_abi, ev)
            if args is not None:
                out.append((ev, args))
        return out

    async def _enrich_one(
        self,
        item: tuple[RawEvent, dict],
        senders: Dict[str, str],
        counts: Counter,
        symbols: SymbolResolver,
        blocks: BlockTimestampResolver,
        reputation: ReputationMemo,
    ) -> EnrichedPool:
        ev, args = item
        creator = creator_of(ev, senders)
        sym0, sym1, ts, rep = await asyncio.gather(
            symbols.symbol(args["token0"]),
            symbols.symbol(args["token1"]),
            blocks.timestamp(ev.block_number),
            reputation.lookup(creator),
        )
        return EnrichedPool(
            pool=args["pool"],
            token0=args["token0"],
            token1=args["token1"],
            token0_symbol=sym0,
            token1_symbol=sym1,
            stable=args["stable"],
            creator=creator,
            reputation=rep,
            block_number=ev.block_number,
            timestamp=ts,
            is_first_pool=creator != ZERO_ADDRESS and counts.get(creator.lower(), 0) == 1,
            tx_hash=ev.tx_hash,
        )

    async def creator_pools(
        self,
        provider: ChainDataProvider,
        events: Sequence[RawEvent],
        creator: str,
        event_abi: dict = POOL_CREATED_ABI,
    ) -> List[CreatorPool]:
        """Every pool in `events` whose tx was sent by `creator`, newest first."""
        target = creator.lower()
        senders = await resolve_senders(provider, events, self.concurrency)
        matches = [
            ev for ev in sort_events(events)
            if ev.tx_hash and creator_of(ev, senders) == target
        ]
        log.info(f"creator.matches addr={target} window={len(events)} matches={len(matches)}")

        symbols = SymbolResolver(provider)
        blocks = BlockTimestampResolver(provider)

        async def one(ev: RawEvent, args: dict) -> CreatorPool:
            sym0, sym1, ts = await asyncio.gather(
                symbols.symbol(args["token0"]),
                symbols.symbol(args["token1"]),
                blocks.timestamp(ev.block_number),
            )
            return CreatorPool(
                pool=args["pool"],
                token0_symbol=sym0,
                token1_symbol=sym1,
                block_number=ev.block_number,
                timestamp=ts,
                tx_hash=ev.tx_hash,
                explorer_link=f"{self.explorer_url}/tx/{ev.tx_hash}",
            )

        return list(await asyncio.gather(*(one(ev, args) for ev, args in self._decodable(matches, event_abi))))

    async def creator_reputation(self, creator: str) -> ReputationResult:
        return await self.reputation.lookup(creator.lower())
