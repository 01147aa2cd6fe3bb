from unittest.mock import AsyncMock, MagicMock

import pytest
from hexbytes import HexBytes
from web3.datastructures import AttributeDict

from redflag.sources.pool_pipeline.evm.utils.client import Web3ChainProvider, build_providers

FACTORY = "0x420dd381b31aef6683db6b902084cb0ffece40da"


class FakeEth:
    def __init__(self):
        self.get_logs = AsyncMock(return_value=[AttributeDict({
            "address": "0x420DD381b31aEf6683db6B902084cB0FFEcE40Da",
            "topics": [HexBytes("0x" + "01" * 32)],
            "data": HexBytes("0x"),
            "blockNumber": 500,
            "transactionHash": HexBytes("0x" + "cd" * 32),
            "logIndex": 2,
        })])
        self.get_transaction = AsyncMock(return_value=AttributeDict({"from": "0xAbC0000000000000000000000000000000000001"}))
        self.get_block = AsyncMock(return_value=AttributeDict({"number": 500, "timestamp": 1_700_000_000}))

    @property
    def block_number(self):
        async def _head():
            return 12_345
        return _head()


def _provider():
    w3 = MagicMock()
    w3.eth = FakeEth()
    return Web3ChainProvider("https://base.example.org/v2/secret-key", w3=w3), w3


@pytest.mark.asyncio
async def test_get_logs_returns_raw_events():
    provider, w3 = _provider()

    (ev,) = await provider.get_logs(FACTORY, ["0x" + "01" * 32], 400, 600)

    params = w3.eth.get_logs.await_args.args[0]
    assert params["fromBlock"] == 400
    assert params["toBlock"] == 600
    assert params["address"] == "0x420DD381b31aEf6683db6B902084cB0FFEcE40Da"
    assert ev.block_number == 500
    assert ev.tx_hash == "0x" + "cd" * 32
    assert ev.log_index == 2


@pytest.mark.asyncio
async def test_head_transaction_and_block_reads():
    provider, _ = _provider()

    assert await provider.get_block_number() == 12_345
    assert (await provider.get_transaction("0x" + "cd" * 32))["from"].startswith("0xAbC")
    assert (await provider.get_block(500))["timestamp"] == 1_700_000_000


def test_provider_name_hides_url_path():
    provider, _ = _provider()
    assert provider.name == "base.example.org"


def test_build_providers_requires_endpoints():
    with pytest.raises(ValueError):
        build_providers([])
