"""
Arbitrage Monitor.

Estimates round-trip profit of three-hop token cycles from Uniswap V3
Quoter quotes: discovers the most profitable triples of a token catalog and
keeps re-quoting a selected triple on a fixed schedule.
"""

from arb_monitor.version import __version__

PROJECT_NAME = "arb-monitor"
VERSION = __version__

from arb_monitor.cache import JsonFileStore, MemoryStore, ResultCache
from arb_monitor.exceptions import (
    ArbMonitorError,
    ConfigurationError,
    LegFailure,
    NetworkError,
    QuoteUnavailable,
    ScanSkipped,
    ValidationError,
)
from arb_monitor.monitor import ArbitrageMonitor
from arb_monitor.quoter import QuoteOracleClient
from arb_monitor.searcher import CycleSearcher
from arb_monitor.types import (
    ETHEREUM,
    ArbitrageState,
    LegQuote,
    Network,
    Token,
    TriangleResult,
    Triple,
)

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "ArbitrageMonitor",
    "ArbitrageState",
    "ArbMonitorError",
    "ConfigurationError",
    "CycleSearcher",
    "ETHEREUM",
    "JsonFileStore",
    "LegFailure",
    "LegQuote",
    "MemoryStore",
    "Network",
    "NetworkError",
    "QuoteOracleClient",
    "QuoteUnavailable",
    "ResultCache",
    "ScanSkipped",
    "Token",
    "TriangleResult",
    "Triple",
    "ValidationError",
]
