from eth_utils import event_abi_to_log_topic
from web3 import Web3

# PoolCreated(address indexed token0, address indexed token1, bool indexed stable, address pool, uint256)
POOL_CREATED_ABI = {
    "anonymous": False,
    "inputs": [
        {"indexed": True, "internalType": "address", "name": "token0", "type": "address"},
        {"indexed": True, "internalType": "address", "name": "token1", "type": "address"},
        {"indexed": True, "internalType": "bool", "name": "stable", "type": "bool"},
        {"indexed": False, "internalType": "address", "name": "pool", "type": "address"},
        {"indexed": False, "internalType": "uint256", "name": "", "type": "uint256"}
    ],
    "name": "PoolCreated",
    "type": "event"
}

POOL_CREATED_TOPIC = Web3.to_hex(event_abi_to_log_topic(POOL_CREATED_ABI))
