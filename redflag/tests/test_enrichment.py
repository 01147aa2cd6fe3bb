import httpx
import pytest

from redflag.sources.pool_pipeline.evm.utils.enrichment import PoolEnricher, sort_events
from redflag.sources.reputation.ethos_client import EthosClient
from redflag.tests.fakes import FakeProvider, FakeReputation, addr, make_pool_event, tx
from redflag.utils.constants import ZERO_ADDRESS
from redflag.utils.types import ReputationResult

ALICE = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
BOB = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
WETH = addr(0x4200)
USDC = addr(0x833)


@pytest.mark.asyncio
async def test_first_deployment_flag_is_case_insensitive():
    events = [
        make_pool_event(100, tx(1)),
        make_pool_event(200, tx(2)),
        make_pool_event(150, tx(3)),
    ]
    provider = FakeProvider(
        events=events,
        senders={tx(1): ALICE.upper().replace("0X", "0x"), tx(2): ALICE, tx(3): BOB},
    )

    pools = await PoolEnricher(FakeReputation()).enrich(provider, events)

    flags = {p.block_number: p.is_first_pool for p in pools}
    assert flags == {200: False, 150: True, 100: False}
    assert {p.creator for p in pools if p.block_number != 150} == {ALICE}


def test_sort_events_descending_by_block():
    events = [make_pool_event(b, tx(b)) for b in (100, 250, 75)]
    assert [ev.block_number for ev in sort_events(events)] == [250, 100, 75]


@pytest.mark.asyncio
async def test_output_is_sorted_newest_first():
    events = [make_pool_event(b, tx(b)) for b in (100, 250, 75)]
    provider = FakeProvider(events=events, senders={tx(b): BOB for b in (100, 250, 75)})

    pools = await PoolEnricher(FakeReputation()).enrich(provider, events)

    assert [p.block_number for p in pools] == [250, 100, 75]


@pytest.mark.asyncio
async def test_only_top_n_are_enriched_but_whole_window_is_counted():
    events = [make_pool_event(b, tx(b)) for b in range(1, 21)]
    senders = {tx(b): addr(0xC000 + b).lower() for b in range(1, 21)}
    senders[tx(1)] = ALICE   # oldest, outside the top 5
    senders[tx(20)] = ALICE  # newest
    provider = FakeProvider(events=events, senders=senders)
    reputation = FakeReputation()

    pools = await PoolEnricher(reputation, limit=5).enrich(provider, events)

    assert [p.block_number for p in pools] == [20, 19, 18, 17, 16]
    assert pools[0].is_first_pool is False
    assert all(p.is_first_pool for p in pools[1:])
    # every tx in the window is resolved, but only top-N blocks are read
    assert sorted(provider.tx_calls) == sorted(tx(b) for b in range(1, 21))
    assert sorted(provider.block_calls) == [16, 17, 18, 19, 20]
    assert len(reputation.calls) == 5


@pytest.mark.asyncio
async def test_each_tx_hash_is_resolved_once():
    events = [make_pool_event(500, tx(9), log_index=0), make_pool_event(500, tx(9), log_index=1)]
    provider = FakeProvider(events=events, senders={tx(9): ALICE})

    pools = await PoolEnricher(FakeReputation()).enrich(provider, events)

    assert provider.tx_calls == [tx(9)]
    assert [p.is_first_pool for p in pools] == [False, False]
    assert provider.block_calls == [500]


@pytest.mark.asyncio
async def test_sender_falls_back_to_receipt_then_zero_address():
    events = [make_pool_event(10, tx(1)), make_pool_event(20, tx(2)), make_pool_event(30, None)]
    provider = FakeProvider(events=events, receipt_senders={tx(1): BOB})

    pools = await PoolEnricher(FakeReputation()).enrich(provider, events)

    by_block = {p.block_number: p for p in pools}
    assert by_block[10].creator == BOB
    assert by_block[10].is_first_pool is True
    assert by_block[20].creator == ZERO_ADDRESS
    assert by_block[30].creator == ZERO_ADDRESS
    # unresolved creators are never "first" and do not count against each other
    assert by_block[20].is_first_pool is False
    assert by_block[30].is_first_pool is False


@pytest.mark.asyncio
async def test_symbols_fall_back_to_truncated_address():
    unknown = addr(0xDEAD)
    events = [make_pool_event(10, tx(1), token0=WETH, token1=unknown, stable=True)]
    provider = FakeProvider(events=events, senders={tx(1): ALICE}, symbols={WETH: "WETH\x00\x00"})

    (pool,) = await PoolEnricher(FakeReputation()).enrich(provider, events)

    assert pool.token0 == WETH
    assert pool.token0_symbol == "WETH"
    assert pool.token1_symbol == unknown[:6] + "..."
    assert pool.stable is True
    assert pool.pool == addr(0x1000 + 10)
    assert pool.timestamp == 1_700_000_010


@pytest.mark.asyncio
async def test_block_lookup_failure_leaves_timestamp_empty():
    events = [make_pool_event(10, tx(1))]
    provider = FakeProvider(events=events, senders={tx(1): ALICE}, block_errors={10})

    (pool,) = await PoolEnricher(FakeReputation()).enrich(provider, events)

    assert pool.timestamp is None
    assert pool.to_json()["timestamp"] is None


@pytest.mark.asyncio
async def test_reputation_is_fetched_once_per_creator():
    events = [make_pool_event(b, tx(b)) for b in (1, 2, 3)]
    provider = FakeProvider(events=events, senders={tx(b): ALICE for b in (1, 2, 3)})
    reputation = FakeReputation({ALICE: ReputationResult(score=1450)})

    pools = await PoolEnricher(reputation).enrich(provider, events)

    assert reputation.calls == [ALICE]
    assert {p.reputation.score for p in pools} == {1450}
    assert pools[0].to_json()["scoreTier"] == "verified"


@pytest.mark.asyncio
async def test_reputation_failure_is_kept_apart_from_no_history():
    events = [make_pool_event(1, tx(1)), make_pool_event(2, tx(2))]
    provider = FakeProvider(events=events, senders={tx(1): ALICE, tx(2): BOB})
    reputation = FakeReputation({
        ALICE: ReputationResult(error="HTTP 503"),
        BOB: ReputationResult(score=None),
    })

    pools = await PoolEnricher(reputation).enrich(provider, events)
    by_creator = {p.creator: p.to_json() for p in pools}

    assert by_creator[ALICE]["ethosScore"] is None
    assert by_creator[ALICE]["ethosError"] == "HTTP 503"
    assert by_creator[BOB]["ethosScore"] is None
    assert by_creator[BOB]["ethosError"] is None
    assert by_creator[BOB]["scoreTier"] == "unknown"


@pytest.mark.asyncio
async def test_unresolved_creator_skips_reputation_service():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"score": 1300})

    events = [make_pool_event(1, None), make_pool_event(2, tx(2))]
    provider = FakeProvider(events=events, senders={tx(2): BOB})
    client = EthosClient(base_url="https://ethos.test/api/v2", transport=httpx.MockTransport(handler))

    pools = await PoolEnricher(client).enrich(provider, events)
    by_block = {p.block_number: p for p in pools}

    assert len(requests) == 1
    assert by_block[2].reputation == ReputationResult(score=1300)
    assert by_block[1].reputation.error == "creator unresolved"


@pytest.mark.asyncio
async def test_undecodable_logs_are_skipped_but_still_counted():
    good = make_pool_event(10, tx(1))
    bad = good._replace(block_number=20, tx_hash=tx(2), data="0x")
    provider = FakeProvider(events=[good, bad], senders={tx(1): ALICE, tx(2): ALICE})

    pools = await PoolEnricher(FakeReputation()).enrich(provider, [good, bad])

    assert [p.block_number for p in pools] == [10]
    assert pools[0].is_first_pool is False


@pytest.mark.asyncio
async def test_creator_pools_filters_by_sender():
    events = [make_pool_event(b, tx(b)) for b in (10, 30, 20, 40)] + [make_pool_event(50, None)]
    provider = FakeProvider(
        events=events,
        senders={tx(10): ALICE, tx(30): ALICE.upper().replace("0X", "0x"), tx(20): BOB, tx(40): BOB},
        symbols={addr(0xA0): "AERO", addr(0xB0): "USDC"},
    )
    enricher = PoolEnricher(FakeReputation(), explorer_url="https://basescan.org/")

    pools = await enricher.creator_pools(provider, events, ALICE.upper().replace("0X", "0x"))

    assert [p.block_number for p in pools] == [30, 10]
    assert pools[0].pair == "AERO/USDC"
    assert pools[0].explorer_link == f"https://basescan.org/tx/{tx(30)}"
    body = pools[0].to_json(now=1_700_000_030 + 120)
    assert body["timeAgo"] == "2m ago"
    assert body["txHash"] == tx(30)
