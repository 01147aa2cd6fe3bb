from typing import Any, Dict, Sequence
from urllib.parse import urlparse
import logging

import backoff
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from redflag.sources.pool_pipeline.config.settings import (
    BASE_RPC_URLS,
    RPC_HEAD_MAX_TRIES,
    RPC_TIMEOUT_SECONDS,
)
from redflag.utils.log_utils import sanitize_log
from redflag.utils.types import RawEvent

logger = logging.getLogger(__name__)

# Cache of Web3 clients per RPC URL
_web3_clients: Dict[str, AsyncWeb3] = {}


def get_web3_client(rpc_url: str) -> AsyncWeb3:
    """Returns a cached or newly created async Web3 client for a given RPC URL."""
    if rpc_url not in _web3_clients:
        logger.info(f"Creating RPC client: {urlparse(rpc_url).netloc or rpc_url}")
        _web3_clients[rpc_url] = AsyncWeb3(
            AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": RPC_TIMEOUT_SECONDS})
        )
    return _web3_clients[rpc_url]


class Web3ChainProvider:
    """ChainDataProvider backed by one JSON-RPC endpoint."""

    def __init__(self, rpc_url: str, w3: AsyncWeb3 | None = None):
        self.rpc_url = rpc_url
        self.w3 = w3 or get_web3_client(rpc_url)

    @property
    def name(self) -> str:
        return urlparse(self.rpc_url).netloc or self.rpc_url

    def __repr__(self) -> str:
        return f"Web3ChainProvider({self.name})"

    @backoff.on_exception(backoff.expo, Exception, max_tries=RPC_HEAD_MAX_TRIES, jitter=None)
    async def get_block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def get_logs(
        self, address: str, topics: Sequence[str], from_block: int, to_block: int
    ) -> list[RawEvent]:
        logs = await self.w3.eth.get_logs({
            "fromBlock": from_block,
            "toBlock": to_block,
            "address": Web3.to_checksum_address(address),
            "topics": list(topics),
        })
        return [sanitize_log(log) for log in logs]

    async def get_transaction(self, tx_hash: str) -> dict[str, Any]:
        return dict(await self.w3.eth.get_transaction(tx_hash))

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any]:
        return dict(await self.w3.eth.get_transaction_receipt(tx_hash))

    async def read_contract(self, address: str, abi: list, fn_name: str, *args: Any) -> Any:
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        return await getattr(contract.functions, fn_name)(*args).call()

    async def get_block(self, block_number: int) -> dict[str, Any]:
        return dict(await self.w3.eth.get_block(block_number, full_transactions=False))


def build_providers(rpc_urls: Sequence[str] | None = None) -> list[Web3ChainProvider]:
    urls = list(rpc_urls if rpc_urls is not None else BASE_RPC_URLS)
    if not urls:
        raise ValueError("No RPC endpoints configured (BASE_RPC_URLS is empty)")
    return [Web3ChainProvider(url) for url in urls]
