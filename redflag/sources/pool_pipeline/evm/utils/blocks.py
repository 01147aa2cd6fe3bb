import asyncio
import logging
from typing import Dict, Optional

from redflag.utils.types import ChainDataProvider

logger = logging.getLogger(__name__)


class BlockTimestampResolver:
    def __init__(self, provider: ChainDataProvider):
        self.provider = provider
        self._pending: Dict[int, asyncio.Future] = {}

    async def _get_single_block_ts(self, block: int) -> Optional[int]:
        """Unix timestamp for one block, or None if the call fails."""
        try:
            blk = await self.provider.get_block(block)
            return int(blk["timestamp"])
        except Exception as exc:
            logger.warning(f"get_block failed for block {block} on {self.provider.name}: {exc}")
            return None

    async def timestamp(self, block: int) -> Optional[int]:
        # pools in the same block share one get_block call
        if block not in self._pending:
            self._pending[block] = asyncio.ensure_future(self._get_single_block_ts(block))
        return await self._pending[block]
