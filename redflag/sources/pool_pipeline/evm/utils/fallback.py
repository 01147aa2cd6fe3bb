from typing import Optional, Sequence
import logging

from redflag.sources.pool_pipeline.evm.utils.events import RangeLogFetcher, clamp_from_block
from redflag.utils.types import ChainDataProvider, ScanResult, ScanSpec

log = logging.getLogger(__name__)


class ProviderFallbackSelector:
    """Walks the provider list in order and keeps the first one with events.

    A provider is skipped when its head-block query fails or when its whole
    scan comes back empty. Zero events is a valid answer from that provider,
    so it is not retried, but the next provider still gets a turn.
    """

    def __init__(self, providers: Sequence[ChainDataProvider], fetcher: RangeLogFetcher):
        if not providers:
            raise ValueError("ProviderFallbackSelector needs at least one provider")
        self.providers = list(providers)
        self.fetcher = fetcher

    async def select(self, spec: ScanSpec) -> Optional[ScanResult]:
        for provider in self.providers:
            try:
                head = await provider.get_block_number()
            except Exception as exc:
                log.warning(f"rpc.failed provider={provider.name} err={exc}")
                continue

            from_block = clamp_from_block(head, spec.depth)
            events = await self.fetcher.fetch(
                provider,
                spec.address,
                spec.topics,
                from_block,
                head,
                stop_after=spec.target_count if spec.early_stop else None,
            )
            if not events:
                log.info(f"rpc.empty provider={provider.name} blocks={from_block}-{head}")
                continue

            log.info(f"rpc.selected provider={provider.name} events={len(events)}")
            return ScanResult(provider=provider, events=events, from_block=from_block, to_block=head)

        log.warning("rpc.exhausted no provider returned events")
        return None
