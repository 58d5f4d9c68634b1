"""
Console rendering of monitor snapshots and suggestion lists.
"""

import re
from typing import Optional, Sequence

from tabulate import tabulate

from .types import ArbitrageState, TriangleResult
from .utils import format_amount


# ANSI color codes for pretty output
class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"

    @staticmethod
    def strip(text: str) -> str:
        """Remove all ANSI codes from text."""
        return re.sub(r"\033\[[0-9;]+m", "", text)


LEG_FAILURE_HINTS = {
    1: "No trading path available for this pair.",
    2: "This pair can't be traded right now.",
    3: "Unable to complete the arbitrage loop.",
}
GENERIC_FAILURE_HINT = "Something went wrong."


def failure_hint(step: Optional[int]) -> str:
    """User-facing explanation for a failed step."""
    return LEG_FAILURE_HINTS.get(step, GENERIC_FAILURE_HINT)


def format_suggestions(suggestions: Sequence[TriangleResult]) -> str:
    """Render the suggestion list as a table."""
    if not suggestions:
        return "No profitable suggestions found."

    rows = []
    for rank, suggestion in enumerate(suggestions, start=1):
        rows.append([rank, suggestion.triple.label, format_amount(suggestion.profit)])
    return tabulate(rows, headers=["#", "Cycle", "Profit"], tablefmt="grid")


def format_state(
    state: ArbitrageState, suggestion: Optional[TriangleResult] = None
) -> str:
    """
    Render one snapshot.

    Shows the starting/final/profit block, the debug log and, on failure, the
    hint for the failed step plus ``suggestion`` as an alternative.
    """
    c = Colors
    symbol = state.selection.start.symbol
    lines = [f"{c.BOLD}{state.selection.label}{c.RESET}"]

    if state.in_progress:
        lines.append(f"  {c.DIM}Calculating...{c.RESET}")

    profit_color = c.GREEN if state.profit > 0 else c.RED
    lines.append(f"  Starting  {format_amount(state.initial_amount)} {symbol}")
    lines.append(f"  Final     {format_amount(state.final_amount)} {symbol}")
    lines.append(
        f"  Profit    {profit_color}{format_amount(state.profit)} {symbol}{c.RESET}"
    )

    if state.failure is not None:
        lines.append(f"  {c.RED}{failure_hint(state.failure.step)}{c.RESET}")
        lines.append(f"  {c.DIM}{state.error_for(state.failure.step)}{c.RESET}")
        if suggestion is not None:
            lines.append(f"  {c.YELLOW}Try this: {suggestion}{c.RESET}")

    if state.debug_log:
        lines.append(f"  {c.DIM}Debug Log{c.RESET}")
        lines.extend(f"    {entry}" for entry in state.debug_log)

    return "\n".join(lines)
