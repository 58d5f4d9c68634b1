"""
Uniswap V3 Quoter client.

Wraps the read-only ``quoteExactInputSingle`` call. The Quoter simulates a
swap through one pool and reverts with a reason when the pool is missing or
cannot fill the amount; every such rejection surfaces as QuoteUnavailable.
No retries and no caching happen here.
"""

import asyncio
import logging
from typing import Optional, Protocol, runtime_checkable

from web3 import Web3

from .exceptions import QuoteUnavailable
from .types import Network, Token

logger = logging.getLogger(__name__)

# Uniswap V3 Quoter ABI (quoteExactInputSingle only)
QUOTER_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "tokenIn", "type": "address"},
            {"internalType": "address", "name": "tokenOut", "type": "address"},
            {"internalType": "uint24", "name": "fee", "type": "uint24"},
            {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
            {
                "internalType": "uint160",
                "name": "sqrtPriceLimitX96",
                "type": "uint160",
            },
        ],
        "name": "quoteExactInputSingle",
        "outputs": [{"internalType": "uint256", "name": "amountOut", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    }
]

# Common V3 fee tiers (hundredths of a basis point)
V3_FEE_TIERS = {
    "LOWEST": 100,  # 0.01%
    "LOW": 500,  # 0.05%
    "MEDIUM": 3000,  # 0.30%
    "HIGH": 10000,  # 1.00%
}

DEFAULT_FEE_TIER = V3_FEE_TIERS["MEDIUM"]

# No price limit
NO_PRICE_LIMIT = 0


@runtime_checkable
class QuoteSource(Protocol):
    """Anything that can price token_in -> token_out for an exact input."""

    async def quote(self, token_in: Token, token_out: Token, amount_in: int) -> int:
        """Return expected output in token_out smallest units."""
        ...


def validate_quote_request(
    token_in: Token, token_out: Token, amount_in: int, fee_tier: int
) -> None:
    """
    Check a quote request before it reaches the endpoint.

    Raises:
        QuoteUnavailable: If the request is malformed
    """
    for token in (token_in, token_out):
        if not Web3.is_address(token.address):
            raise QuoteUnavailable(
                token_in.symbol,
                token_out.symbol,
                f"Invalid token address for {token.symbol}: {token.address}",
            )
    if token_in.key == token_out.key:
        raise QuoteUnavailable(
            token_in.symbol, token_out.symbol, "tokenIn and tokenOut must differ"
        )
    if not isinstance(amount_in, int) or amount_in <= 0:
        raise QuoteUnavailable(
            token_in.symbol, token_out.symbol, f"amountIn must be positive: {amount_in}"
        )
    if fee_tier not in V3_FEE_TIERS.values():
        raise QuoteUnavailable(
            token_in.symbol, token_out.symbol, f"Unsupported fee tier: {fee_tier}"
        )


class QuoteOracleClient:
    """
    Quotes single-pool exact-input swaps against one Quoter contract.

    Each call is one outbound ``eth_call``; the client holds no state
    besides the contract handle.
    """

    def __init__(
        self,
        web3: Web3,
        quoter_address: str,
        fee_tier: int = DEFAULT_FEE_TIER,
    ):
        """
        Args:
            web3: Web3 instance connected to the quoter's chain
            quoter_address: Quoter contract address
            fee_tier: Pool fee tier used for every leg (default: 3000)

        Raises:
            ValueError: If the quoter address or fee tier is invalid
        """
        if not Web3.is_address(quoter_address):
            raise ValueError(f"Invalid quoter address: {quoter_address}")
        if fee_tier not in V3_FEE_TIERS.values():
            raise ValueError(f"Unsupported fee tier: {fee_tier}")

        self.web3 = web3
        self.fee_tier = fee_tier
        self.quoter_address = Web3.to_checksum_address(quoter_address)
        self.contract = web3.eth.contract(address=self.quoter_address, abi=QUOTER_ABI)

    @classmethod
    def for_network(
        cls,
        network: Network,
        fee_tier: int = DEFAULT_FEE_TIER,
        rpc_url: Optional[str] = None,
        timeout: int = 10,
    ) -> "QuoteOracleClient":
        """Build a client with its own HTTP provider for ``network``."""
        web3 = Web3(
            Web3.HTTPProvider(
                rpc_url or network.rpc_url, request_kwargs={"timeout": timeout}
            )
        )
        return cls(web3, network.quoter_address, fee_tier=fee_tier)

    def quote_sync(
        self,
        token_in: Token,
        token_out: Token,
        amount_in: int,
        fee_tier: Optional[int] = None,
    ) -> int:
        """
        Quote an exact-input swap (blocking).

        Args:
            token_in: Token sold
            token_out: Token bought
            amount_in: Input in token_in smallest units
            fee_tier: Override the client's fee tier

        Returns:
            Expected output in token_out smallest units

        Raises:
            QuoteUnavailable: If the request is malformed or the call fails
        """
        fee = self.fee_tier if fee_tier is None else fee_tier
        validate_quote_request(token_in, token_out, amount_in, fee)

        try:
            amount_out = self.contract.functions.quoteExactInputSingle(
                Web3.to_checksum_address(token_in.address),
                Web3.to_checksum_address(token_out.address),
                fee,
                amount_in,
                NO_PRICE_LIMIT,
            ).call()
        except Exception as e:
            logger.debug(f"Quote {token_in} -> {token_out} rejected: {e}")
            raise QuoteUnavailable(
                token_in.symbol,
                token_out.symbol,
                str(e),
                details={"fee_tier": fee, "amount_in": amount_in},
            ) from e

        return int(amount_out)

    async def quote(
        self,
        token_in: Token,
        token_out: Token,
        amount_in: int,
        fee_tier: Optional[int] = None,
    ) -> int:
        """
        Async version of quote_sync.

        Runs the blocking RPC call in the default thread pool so the event
        loop stays free while the request is in flight.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self.quote_sync, token_in, token_out, amount_in, fee_tier
        )
