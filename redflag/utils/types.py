from typing import Any, NamedTuple, Optional, Protocol, Sequence

from redflag.utils.clean_util import time_ago
from redflag.utils.constants import score_tier


class RawEvent(NamedTuple):
    address: str
    topics: tuple[str, ...]
    data: str
    block_number: int
    tx_hash: Optional[str]
    log_index: int


class ReputationResult(NamedTuple):
    """Outcome of one reputation lookup.

    score set            -> the account has a score
    score None, no error -> lookup succeeded, account has no history
    error set            -> lookup failed; score is unknown, not "no history"
    """
    score: Optional[int] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class EnrichedPool(NamedTuple):
    pool: str
    token0: str
    token1: str
    token0_symbol: str
    token1_symbol: str
    stable: bool
    creator: str
    reputation: ReputationResult
    block_number: int
    timestamp: Optional[int]
    is_first_pool: bool
    tx_hash: Optional[str]

    def to_json(self) -> dict:
        return {
            "pool": self.pool,
            "token0": self.token0,
            "token1": self.token1,
            "token0Symbol": self.token0_symbol,
            "token1Symbol": self.token1_symbol,
            "stable": self.stable,
            "deployer": self.creator,
            "ethosScore": self.reputation.score,
            "ethosError": self.reputation.error,
            "scoreTier": score_tier(self.reputation.score),
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
            "isFirstPool": self.is_first_pool,
            "transactionHash": self.tx_hash or "",
        }


class CreatorPool(NamedTuple):
    pool: str
    token0_symbol: str
    token1_symbol: str
    block_number: int
    timestamp: Optional[int]
    tx_hash: str
    explorer_link: str

    @property
    def pair(self) -> str:
        return f"{self.token0_symbol}/{self.token1_symbol}"

    def to_json(self, now: Optional[float] = None) -> dict:
        return {
            "pool": self.pool,
            "token0Symbol": self.token0_symbol,
            "token1Symbol": self.token1_symbol,
            "pair": self.pair,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
            "timeAgo": time_ago(self.timestamp, now) if self.timestamp is not None else None,
            "txHash": self.tx_hash,
            "basescanLink": self.explorer_link,
        }


class CreatorSummary(NamedTuple):
    creator: str
    reputation: ReputationResult
    pools: tuple[CreatorPool, ...]
    error: Optional[str] = None

    @property
    def total_pools(self) -> int:
        return len(self.pools)

    def to_json(self, now: Optional[float] = None) -> dict:
        out = {
            "creator": self.creator,
            "creatorScore": self.reputation.score,
            "creatorScoreError": self.reputation.error,
            "totalPools": self.total_pools,
            "pools": [p.to_json(now) for p in self.pools],
        }
        if self.error:
            out["error"] = self.error
        return out


class CacheEntry(NamedTuple):
    data: tuple[EnrichedPool, ...]
    created_at: float


class ScanSpec(NamedTuple):
    address: str
    event_abi: dict
    topics: tuple[str, ...]
    depth: int
    target_count: int
    early_stop: bool = False


class ScanResult(NamedTuple):
    provider: "ChainDataProvider"
    events: list[RawEvent]
    from_block: int
    to_block: int


class ChainDataProvider(Protocol):
    """Read-only view of one RPC endpoint. Every lookup for a scan goes through
    the provider that produced its logs."""

    @property
    def name(self) -> str: ...

    async def get_block_number(self) -> int: ...

    async def get_logs(
        self, address: str, topics: Sequence[str], from_block: int, to_block: int
    ) -> list[RawEvent]: ...

    async def get_transaction(self, tx_hash: str) -> dict[str, Any]: ...

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any]: ...

    async def read_contract(self, address: str, abi: list, fn_name: str, *args: Any) -> Any: ...

    async def get_block(self, block_number: int) -> dict[str, Any]: ...
