"""
Brute-force discovery of profitable triples.

Every index selection i < j < k over the catalog is quoted as the directed
cycle tokens[i] -> tokens[j] -> tokens[k] -> tokens[i]. Triples whose chain
breaks are skipped; the rest are ranked by profit.
"""

import asyncio
import logging
import time
from decimal import Decimal
from itertools import combinations
from typing import Iterator, List, Optional, Sequence

from .chain import quote_triangle
from .exceptions import LegFailure, ScanSkipped
from .quoter import QuoteSource
from .types import Token, TriangleResult, Triple
from .utils import format_duration

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
DEFAULT_PROFIT_FLOOR = Decimal("-1")
DEFAULT_MAX_CONCURRENCY = 5


def unique_tokens(catalog: Sequence[Token]) -> List[Token]:
    """Drop tokens whose address already appeared earlier in the catalog."""
    seen = set()
    tokens = []
    for token in catalog:
        if token.key in seen:
            logger.debug(f"Ignoring duplicate catalog entry {token.symbol}")
            continue
        seen.add(token.key)
        tokens.append(token)
    return tokens


def enumerate_triples(catalog: Sequence[Token]) -> Iterator[Triple]:
    """Yield C(n, 3) candidate triples in index order."""
    for a, b, c in combinations(unique_tokens(catalog), 3):
        yield Triple(a, b, c)


def rank_results(results: Sequence[TriangleResult], top_k: int) -> List[TriangleResult]:
    """
    Sort by profit descending and keep the best ``top_k``.

    The sort is stable, so equal profits keep enumeration order.
    """
    return sorted(results, key=lambda r: r.profit, reverse=True)[:top_k]


class CycleSearcher:
    """
    Finds and ranks profitable triples from a token catalog.

    Candidates are quoted concurrently, bounded by ``max_concurrency``
    triples in flight; the three legs of each triple stay sequential.
    """

    def __init__(
        self,
        oracle: QuoteSource,
        starting_amount: Decimal = Decimal("1"),
        profit_floor: Decimal = DEFAULT_PROFIT_FLOOR,
        top_k: int = DEFAULT_TOP_K,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        """
        Args:
            oracle: Quote source for every leg
            starting_amount: Amount of the first token each cycle starts with
            profit_floor: Keep a triple only if profit > profit_floor
            top_k: Number of results to keep
            max_concurrency: Maximum triples quoted at the same time
        """
        if top_k <= 0:
            raise ValueError(f"top_k must be positive: {top_k}")
        if max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive: {max_concurrency}")
        if starting_amount <= 0:
            raise ValueError(f"starting_amount must be positive: {starting_amount}")

        self.oracle = oracle
        self.starting_amount = Decimal(str(starting_amount))
        self.profit_floor = Decimal(str(profit_floor))
        self.top_k = top_k
        self.max_concurrency = max_concurrency

        # Stats from the last search
        self.candidates = 0
        self.skipped = 0
        self.retained = 0

    async def evaluate(self, triple: Triple) -> TriangleResult:
        """
        Quote one triple.

        Raises:
            LegFailure: If any leg cannot be quoted
        """
        return await quote_triangle(self.oracle, triple, self.starting_amount)

    async def _scan_candidate(
        self, triple: Triple, semaphore: asyncio.Semaphore
    ) -> Optional[TriangleResult]:
        async with semaphore:
            try:
                result = await self.evaluate(triple)
            except LegFailure as e:
                raise ScanSkipped(triple, e) from e

        if result.profit > self.profit_floor:
            return result
        logger.debug(f"{triple.label} below floor ({result.profit})")
        return None

    async def search(self, catalog: Sequence[Token]) -> List[TriangleResult]:
        """
        Run one full scan over the catalog.

        Leg failures never abort the scan; the affected triple is dropped.

        Returns:
            At most top_k results, sorted by profit descending
        """
        triples = list(enumerate_triples(catalog))
        self.candidates = len(triples)
        self.skipped = 0
        logger.info(
            f"Scanning {len(triples)} triples ({len(triples) * 3} quotes max, "
            f"{self.max_concurrency} in flight)"
        )

        start = time.perf_counter()
        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *[self._scan_candidate(triple, semaphore) for triple in triples],
            return_exceptions=True,
        )

        retained: List[TriangleResult] = []
        for outcome in outcomes:
            if isinstance(outcome, ScanSkipped):
                self.skipped += 1
                logger.debug(str(outcome))
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            if outcome is not None:
                retained.append(outcome)

        self.retained = len(retained)
        top = rank_results(retained, self.top_k)
        logger.info(
            f"Scan finished in {format_duration(time.perf_counter() - start)}: "
            f"{self.retained} retained, {self.skipped} skipped, top {len(top)} kept"
        )
        return top
