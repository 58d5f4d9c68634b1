"""
Arbitrage monitor runner.

Wires the config, RPC connection, result cache and monitor together and
prints every snapshot the monitor commits.
"""

import asyncio
from typing import List, Optional, Sequence

from web3 import Web3

from .cache import JsonFileStore, KeyValueStore, ResultCache
from .catalog import default_selection, find_token
from .config import MonitorConfig
from .exceptions import NetworkError, ValidationError
from .monitor import ArbitrageMonitor
from .quoter import QuoteOracleClient, QuoteSource
from .report import Colors, format_state, format_suggestions
from .searcher import CycleSearcher
from .types import ArbitrageState, Token, TriangleResult, Triple
from .utils import get_logger

logger = get_logger(__name__)

# Public Ethereum mainnet endpoints tried after the configured one
FALLBACK_RPCS = [
    "https://eth.drpc.org",
    "https://ethereum.publicnode.com",
    "https://1rpc.io/eth",
    "https://eth.llamarpc.com",
]


class MonitorRunner:
    """
    Runs discovery (through the cache) and the continuous monitor.
    """

    def __init__(
        self,
        config: MonitorConfig,
        oracle: Optional[QuoteSource] = None,
        store: Optional[KeyValueStore] = None,
    ):
        """
        Args:
            config: Validated MonitorConfig
            oracle: Quote source; built by connect() when omitted
            store: Suggestion store; one JSON file per network when omitted
        """
        self.config = config
        self.oracle = oracle
        self.store = store or JsonFileStore.for_network(config.cache_dir, config.network)
        self.web3: Optional[Web3] = None

        self.catalog: List[Token] = []
        self.suggestions: List[TriangleResult] = []
        self.monitor: Optional[ArbitrageMonitor] = None

    def connect(self) -> None:
        """
        Connect to the configured RPC, falling back to public endpoints.

        Raises:
            NetworkError: If no endpoint answers with the expected chain id
        """
        if self.oracle is not None:
            return

        candidates = [self.config.rpc_url] + [
            url for url in FALLBACK_RPCS if url != self.config.rpc_url
        ]
        if self.config.network.chain_id != 1:
            candidates = candidates[:1]

        last_error = None
        for rpc_url in candidates:
            try:
                logger.info(f"Connecting to RPC: {rpc_url}")
                web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 10}))

                chain_id = web3.eth.chain_id
                if chain_id != self.config.network.chain_id:
                    raise NetworkError(
                        f"Expected chain {self.config.network.chain_id}, got {chain_id}",
                        endpoint=rpc_url,
                    )
                block = web3.eth.block_number
                logger.info(f"✓ Connected to {self.config.network.name} (block #{block:,})")

                self.web3 = web3
                self.oracle = QuoteOracleClient(
                    web3, self.config.network.quoter_address, fee_tier=self.config.fee_tier
                )
                return
            except Exception as e:
                last_error = e
                logger.warning(f"RPC connection failed: {e}")
                continue

        raise NetworkError(
            f"Failed to connect to any RPC endpoint. Last error: {last_error}",
            endpoint=candidates[-1],
        )

    def build_catalog(self) -> None:
        """Load the token catalog from config."""
        self.catalog = self.config.load_catalog()

    def make_cache(self) -> ResultCache:
        if self.oracle is None:
            raise RuntimeError("Must call connect() before make_cache()")
        searcher = CycleSearcher(
            self.oracle,
            starting_amount=self.config.starting_amount,
            profit_floor=self.config.profit_floor,
            top_k=self.config.top_k,
            max_concurrency=self.config.max_concurrency,
        )
        return ResultCache(self.store, searcher, key=self.config.cache_key)

    async def load_suggestions(self, refresh: bool = False) -> List[TriangleResult]:
        """
        Load suggestions from cache, scanning only when nothing is stored.

        Args:
            refresh: Clear the stored list and rescan
        """
        if not self.catalog:
            raise RuntimeError("Must call build_catalog() before load_suggestions()")

        cache = self.make_cache()
        if refresh:
            cache.clear()
        print(f"{Colors.DIM}Finding profitable triples...{Colors.RESET}")
        self.suggestions = await cache.get_or_compute(self.catalog)
        return self.suggestions

    def resolve_selection(self, symbols: Optional[Sequence[str]] = None) -> Triple:
        """
        Selection from ``symbols`` (addresses or symbols), else the catalog default.

        Raises:
            ValidationError: If a token is unknown or the tokens repeat
        """
        if not symbols:
            return default_selection(self.catalog)
        if len(symbols) != 3:
            raise ValidationError(f"Expected 3 tokens, got {len(symbols)}")
        return Triple(*(find_token(self.catalog, s) for s in symbols))

    def print_banner(self) -> None:
        """Print startup banner with config summary."""
        cfg = self.config
        c = Colors

        print(f"\n{c.CYAN}{c.BOLD}{'═' * 60}{c.RESET}")
        print(f"{c.CYAN}{c.BOLD}  ARBITRAGE MONITOR {c.RESET}{c.CYAN}— {cfg.network.name}{c.RESET}")
        print(f"{c.CYAN}{'═' * 60}{c.RESET}\n")
        print(
            f"  {c.DIM}Tokens:{c.RESET} {c.GREEN}{len(self.catalog)}{c.RESET} | "
            f"{c.DIM}Fee tier:{c.RESET} {c.GREEN}{cfg.fee_tier}{c.RESET} | "
            f"{c.DIM}Refresh:{c.RESET} {c.GREEN}{cfg.refresh_interval_sec:g}s{c.RESET}\n"
        )

    def _print_state(self, state: ArbitrageState) -> None:
        if state.in_progress:
            return
        best = self.suggestions[0] if self.suggestions else None
        print(format_state(state, suggestion=best))
        print()

    async def run_async(
        self,
        selection: Triple,
        once: bool = False,
    ) -> ArbitrageState:
        """
        Monitor ``selection`` until cancelled (or for one evaluation).

        Returns:
            The last committed snapshot
        """
        self.print_banner()
        if self.suggestions:
            print(format_suggestions(self.suggestions))
            print()

        self.monitor = ArbitrageMonitor(
            self.oracle,
            selection,
            interval_sec=self.config.refresh_interval_sec,
            starting_amount=self.config.starting_amount,
            on_update=self._print_state,
        )

        if once:
            return await self.monitor.evaluate()

        async with self.monitor:
            # Until the surrounding task is cancelled
            await asyncio.Event().wait()
        return self.monitor.state
