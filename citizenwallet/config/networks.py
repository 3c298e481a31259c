from dataclasses import dataclass


@dataclass(frozen=True)
class Network:
    chain_id: int
    name: str
    symbol: str
    explorer: str
    rpc_url: str
    ws_rpc_url: str


NETWORKS: dict[str, Network] = {
    "100": Network(
        chain_id=100,
        name="Gnosis",
        symbol="xDAI",
        explorer="https://gnosisscan.io",
        rpc_url="https://100.engine.citizenwallet.xyz",
        ws_rpc_url="wss://100.engine.citizenwallet.xyz",
    ),
    "137": Network(
        chain_id=137,
        name="Polygon",
        symbol="MATIC",
        explorer="https://polygonscan.com",
        rpc_url="https://137.engine.citizenwallet.xyz",
        ws_rpc_url="wss://137.engine.citizenwallet.xyz",
    ),
    "8453": Network(
        chain_id=8453,
        name="Base",
        symbol="Ether",
        explorer="https://basescan.org/",
        rpc_url="https://8453.engine.citizenwallet.xyz",
        ws_rpc_url="wss://8453.engine.citizenwallet.xyz",
    ),
    "42220": Network(
        chain_id=42220,
        name="CELO",
        symbol="CELO",
        explorer="https://celoscan.io",
        rpc_url="https://42220.engine.citizenwallet.xyz",
        ws_rpc_url="wss://42220.engine.citizenwallet.xyz",
    ),
    "42161": Network(
        chain_id=42161,
        name="Arbitrum",
        symbol="Ether",
        explorer="https://arbiscan.io",
        rpc_url="https://42161.engine.citizenwallet.xyz",
        ws_rpc_url="wss://42161.engine.citizenwallet.xyz",
    ),
}
