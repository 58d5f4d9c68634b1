"""
Shared fixtures: Ethereum tokens and a deterministic fake quote oracle.
"""

import asyncio
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import pytest

from arb_monitor.exceptions import QuoteUnavailable
from arb_monitor.types import Token, Triple

WETH = Token("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "WETH", 18, "ethereum")
USDC = Token("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "USDC", 6, "ethereum")
DAI = Token("0x6B175474E89094C44Da98b954EedeAC495271d0F", "DAI", 18, "ethereum")
USDT = Token("0xdAC17F958D2ee523a2206206994597C13D831ec7", "USDT", 6, "ethereum")
WBTC = Token("0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", "WBTC", 8, "ethereum")
MATIC = Token("0x7D1AfA7B718fb893dB30A3aBc0Cfc608AaCfeBB0", "MATIC", 18, "ethereum")

# USD prices; every cross rate derived from them is an exact Decimal
PRICES = {
    "WETH": Decimal("2000"),
    "USDC": Decimal("1"),
    "DAI": Decimal("1"),
    "USDT": Decimal("1"),
    "WBTC": Decimal("40000"),
    "MATIC": Decimal("0.5"),
}


class FakeOracle:
    """
    Quote source driven by per-pair rates.

    Rates are human-unit exchange rates keyed by (symbol_in, symbol_out).
    Pairs without a rate fall back to ``prices`` when given, otherwise the
    quote is rejected. ``gates`` hold a leg until its asyncio.Event is set.
    """

    def __init__(
        self,
        rates: Optional[Dict[Tuple[str, str], Decimal]] = None,
        prices: Optional[Dict[str, Decimal]] = None,
        failures: Optional[Dict[Tuple[str, str], str]] = None,
    ):
        self.rates = dict(rates or {})
        self.prices = prices
        self.failures = dict(failures or {})
        self.gates: Dict[Tuple[str, str], asyncio.Event] = {}
        self.calls: List[Tuple[str, str, int]] = []

    def gate(self, symbol_in: str, symbol_out: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[(symbol_in, symbol_out)] = event
        return event

    def rate(self, symbol_in: str, symbol_out: str) -> Optional[Decimal]:
        if (symbol_in, symbol_out) in self.rates:
            return self.rates[(symbol_in, symbol_out)]
        if self.prices is not None:
            return self.prices[symbol_in] / self.prices[symbol_out]
        return None

    async def quote(self, token_in: Token, token_out: Token, amount_in: int) -> int:
        pair = (token_in.symbol, token_out.symbol)
        self.calls.append((token_in.symbol, token_out.symbol, amount_in))

        gate = self.gates.get(pair)
        if gate is not None:
            await gate.wait()

        if pair in self.failures:
            raise QuoteUnavailable(token_in.symbol, token_out.symbol, self.failures[pair])
        rate = self.rate(*pair)
        if rate is None:
            raise QuoteUnavailable(token_in.symbol, token_out.symbol, "no pool")

        scale = Decimal(10) ** (token_out.decimals - token_in.decimals)
        return int(Decimal(amount_in) * rate * scale)


@pytest.fixture
def catalog():
    return [WETH, USDC, DAI, USDT, WBTC, MATIC]


@pytest.fixture
def tokens(catalog):
    """Catalog tokens by symbol."""
    return {token.symbol: token for token in catalog}


@pytest.fixture
def prices():
    return dict(PRICES)


@pytest.fixture
def weth_usdc_dai():
    return Triple(WETH, USDC, DAI)


@pytest.fixture
def profitable_oracle():
    """WETH -> USDC -> DAI -> WETH returns 1.0021 WETH per WETH."""
    return FakeOracle(
        rates={
            ("WETH", "USDC"): Decimal("2000"),
            ("USDC", "DAI"): Decimal("1"),
            ("DAI", "WETH"): Decimal("0.00050105"),
        }
    )


@pytest.fixture
def make_oracle():
    return FakeOracle
