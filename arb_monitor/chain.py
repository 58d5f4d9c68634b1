"""
Three-leg quote chain.

Leg n+1 sells exactly what leg n bought, so the legs of one triple are
always awaited one after another.
"""

from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from .exceptions import LegFailure, QuoteUnavailable
from .quoter import QuoteSource
from .types import LegQuote, TriangleResult, Triple
from .utils import from_base_units, to_base_units

LegCallback = Callable[[LegQuote], None]


async def run_chain(
    oracle: QuoteSource,
    triple: Triple,
    amount_in: int,
    on_leg: Optional[LegCallback] = None,
) -> List[LegQuote]:
    """
    Quote A -> B -> C -> A starting from ``amount_in`` of A.

    Args:
        oracle: Quote source
        triple: Cycle to quote
        amount_in: Starting amount in token1 smallest units
        on_leg: Called with each LegQuote as soon as its leg succeeds

    Returns:
        The three LegQuotes in order

    Raises:
        LegFailure: On the first leg that cannot be quoted; later legs are
            not attempted
    """
    legs: List[LegQuote] = []
    amount = amount_in

    for step, (token_in, token_out) in enumerate(triple.legs(), start=1):
        try:
            amount_out = await oracle.quote(token_in, token_out, amount)
        except QuoteUnavailable as e:
            raise LegFailure(step, e, completed=legs) from e

        leg = LegQuote(
            step=step,
            token_in=token_in,
            token_out=token_out,
            amount_in=amount,
            amount_out=amount_out,
        )
        legs.append(leg)
        if on_leg is not None:
            on_leg(leg)
        amount = amount_out

    return legs


def summarize(triple: Triple, legs: Sequence[LegQuote]) -> TriangleResult:
    """
    Build the round-trip result from leg-1 input and leg-3 output.

    Both ends are in token1, so both are converted with token1's decimals.
    """
    if len(legs) != 3:
        raise ValueError(f"Expected 3 legs, got {len(legs)}")

    decimals = triple.start.decimals
    initial_amount = from_base_units(legs[0].amount_in, decimals)
    final_amount = from_base_units(legs[-1].amount_out, decimals)
    return TriangleResult.from_amounts(triple, initial_amount, final_amount)


async def quote_triangle(
    oracle: QuoteSource,
    triple: Triple,
    starting_amount: Decimal = Decimal("1"),
    on_leg: Optional[LegCallback] = None,
) -> TriangleResult:
    """Quote a full cycle starting from a human amount of token1."""
    amount_in = to_base_units(starting_amount, triple.start.decimals)
    legs = await run_chain(oracle, triple, amount_in, on_leg=on_leg)
    return summarize(triple, legs)
