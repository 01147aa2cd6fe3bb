import asyncio
import logging
from typing import Dict

from redflag.sources.pool_pipeline.config.settings import ERC20_SYMBOL_ABI
from redflag.utils.clean_util import clean_symbol, short_address
from redflag.utils.types import ChainDataProvider

logger = logging.getLogger(__name__)


async def get_token_symbol(provider: ChainDataProvider, token_addr: str) -> str:
    """symbol() for an ERC-20, or a truncated address when the call fails."""
    try:
        symbol = await provider.read_contract(token_addr, ERC20_SYMBOL_ABI, "symbol")
    except Exception as exc:
        logger.debug(f"symbol() failed for {token_addr}: {exc}")
        return short_address(token_addr)
    return clean_symbol(symbol, token_addr)


class SymbolResolver:
    """Per-scan memo so a token shared by several pools is read once."""

    def __init__(self, provider: ChainDataProvider):
        self.provider = provider
        self._pending: Dict[str, asyncio.Future] = {}

    async def symbol(self, token_addr: str) -> str:
        key = token_addr.lower()
        if key not in self._pending:
            self._pending[key] = asyncio.ensure_future(get_token_symbol(self.provider, token_addr))
        return await self._pending[key]
