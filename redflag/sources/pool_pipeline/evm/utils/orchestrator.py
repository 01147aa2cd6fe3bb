import logging
import time
from typing import Optional, Sequence

from eth_utils import event_abi_to_log_topic
from web3 import Web3

from redflag.sources.pool_pipeline.config.settings import (
    CREATOR_SCAN_DEPTH,
    LOG_CHUNK_TIERS,
    POOL_FACTORY_ADDRESS,
    POOL_RESULT_LIMIT,
    POOL_SCAN_DEPTH,
)
from redflag.sources.pool_pipeline.evm.aerodrome.config import POOL_CREATED_ABI
from redflag.sources.pool_pipeline.evm.utils.client import build_providers
from redflag.sources.pool_pipeline.evm.utils.enrichment import PoolEnricher
from redflag.sources.pool_pipeline.evm.utils.events import RangeLogFetcher
from redflag.sources.pool_pipeline.evm.utils.fallback import ProviderFallbackSelector
from redflag.sources.reputation.ethos_client import EthosClient
from redflag.storage.cache import ResultCache
from redflag.utils.constants import LATEST_POOLS_CACHE_KEY
from redflag.utils.types import ChainDataProvider, CreatorSummary, ReputationResult, ScanSpec

log = logging.getLogger(__name__)


class PoolQueryService:
    """
    Entry point for both read paths.

    latest_pools: cache -> provider fallback -> chunked scan -> enrichment -> cache.
    creator_pools: wider uncached scan filtered to one creator.

    Neither method raises for upstream failures; they answer with an empty,
    flagged payload instead.
    """

    def __init__(
        self,
        providers: Sequence[ChainDataProvider],
        reputation: EthosClient,
        cache: Optional[ResultCache] = None,
        fetcher: Optional[RangeLogFetcher] = None,
        factory_address: str = POOL_FACTORY_ADDRESS,
        pool_scan_depth: int = POOL_SCAN_DEPTH,
        creator_scan_depth: int = CREATOR_SCAN_DEPTH,
        result_limit: int = POOL_RESULT_LIMIT,
        event_abi: dict = POOL_CREATED_ABI,
        clock=time.time,
    ):
        self.cache = cache if cache is not None else ResultCache(clock=clock)
        self.selector = ProviderFallbackSelector(providers, fetcher or RangeLogFetcher(LOG_CHUNK_TIERS))
        self.enricher = PoolEnricher(reputation, limit=result_limit)
        self.factory_address = factory_address
        self.pool_scan_depth = pool_scan_depth
        self.creator_scan_depth = creator_scan_depth
        self.result_limit = result_limit
        self.event_abi = event_abi
        self.clock = clock

    def _scan_spec(self, depth: int) -> ScanSpec:
        return ScanSpec(
            address=self.factory_address,
            event_abi=self.event_abi,
            topics=(Web3.to_hex(event_abi_to_log_topic(self.event_abi)),),
            depth=depth,
            target_count=self.result_limit,
        )

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    async def latest_pools(self) -> dict:
        entry = self.cache.get(LATEST_POOLS_CACHE_KEY)
        if entry is not None:
            log.info(f"pools.cache_hit age={self.clock() - entry.created_at:.1f}s")
            return {
                "pools": [p.to_json() for p in entry.data],
                "lastUpdated": int(entry.created_at * 1000),
                "cached": True,
            }

        log.info("pools.cache_miss running scan")
        start = self.clock()
        try:
            spec = self._scan_spec(self.pool_scan_depth)
            scan = await self.selector.select(spec)
            if scan is None:
                return self._empty_pools("No pool events found on any provider")
            pools = await self.enricher.enrich(scan.provider, scan.events, spec.event_abi)
        except Exception:
            log.exception("pools.failed")
            return self._empty_pools("Failed to fetch pools")

        entry = self.cache.put(LATEST_POOLS_CACHE_KEY, pools)
        log.info(f"pools.fetched count={len(pools)} provider={scan.provider.name} duration={self.clock() - start:.2f}s")
        return {
            "pools": [p.to_json() for p in entry.data],
            "lastUpdated": int(entry.created_at * 1000),
            "cached": False,
        }

    def _empty_pools(self, error: str) -> dict:
        return {"pools": [], "lastUpdated": self._now_ms(), "cached": False, "error": error}

    async def creator_pools(self, address: str) -> CreatorSummary:
        target = address.lower()
        log.info(f"creator.pools.fetch addr={target}")
        try:
            spec = self._scan_spec(self.creator_scan_depth)
            scan = await self.selector.select(spec)
            if scan is None:
                return CreatorSummary(
                    creator=target,
                    reputation=ReputationResult(),
                    pools=(),
                    error="Failed to fetch creator pools",
                )
            pools = await self.enricher.creator_pools(scan.provider, scan.events, target, spec.event_abi)
            reputation = await self.enricher.creator_reputation(target)
        except Exception:
            log.exception(f"creator.pools.failed addr={target}")
            return CreatorSummary(
                creator=target,
                reputation=ReputationResult(),
                pools=(),
                error="Failed to fetch creator pools",
            )

        log.info(f"creator.pools.fetched addr={target} count={len(pools)}")
        return CreatorSummary(creator=target, reputation=reputation, pools=tuple(pools))

    async def aclose(self) -> None:
        await self.enricher.reputation.aclose()


def build_pool_service() -> PoolQueryService:
    return PoolQueryService(providers=build_providers(), reputation=EthosClient())
