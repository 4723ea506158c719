"""
AsyncWeb3 connection pool.

One AsyncWeb3 instance per RPC endpoint, shared by every sequencer that
talks to that endpoint. Sessions stay open until disconnect() or
disconnect_all() is called.
"""

from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3

from faucet.config.constants import BLOCKCHAIN_TIMEOUT, INFURA_HTTP_URL_TEMPLATE


class Web3Pool:
    """
    Caches AsyncWeb3 instances keyed by endpoint URL.
    """

    def __init__(self, request_timeout: float = BLOCKCHAIN_TIMEOUT) -> None:
        self._request_timeout = request_timeout
        self._connections: dict[str, AsyncWeb3] = {}

    def get_web3(self, url: str) -> AsyncWeb3:
        """Return the pooled AsyncWeb3 for url, creating it on first use."""
        w3 = self._connections.get(url)
        if w3 is None:
            w3 = AsyncWeb3(
                AsyncHTTPProvider(url, request_kwargs={"timeout": self._request_timeout})
            )
            self._connections[url] = w3
            logger.debug(f"Created AsyncWeb3 connection ({len(self._connections)} pooled)")
        return w3

    def get_infura_web3(self, project_id: str, net_name: str) -> AsyncWeb3:
        return self.get_web3(
            INFURA_HTTP_URL_TEMPLATE.format(net_name=net_name, project_id=project_id)
        )

    async def disconnect(self, url: str) -> None:
        """Close and forget the session for one endpoint."""
        w3 = self._connections.pop(url, None)
        if w3 is None:
            return
        try:
            await w3.provider.disconnect()
        except (OSError, RuntimeError) as e:
            logger.warning(f"Error closing Web3 session: {e}")

    async def disconnect_all(self) -> None:
        for url in list(self._connections):
            await self.disconnect(url)

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, url: object) -> bool:
        return url in self._connections


# Process-wide pool
web3_pool = Web3Pool()
