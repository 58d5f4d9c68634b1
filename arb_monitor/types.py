"""
Core data types for three-leg quote monitoring.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

from .exceptions import LegFailure, ValidationError
from .utils import format_amount, from_base_units


@dataclass(frozen=True)
class Network:
    """
    A chain the monitor quotes against.

    Attributes:
        id: Stable identifier (e.g., "ethereum"), also used to key caches
        name: Display name
        chain_id: EVM chain id
        rpc_url: HTTP(S) RPC endpoint
        quoter_address: Address of the Uniswap V3 Quoter contract
    """

    id: str
    name: str
    chain_id: int
    rpc_url: str
    quoter_address: str


ETHEREUM = Network(
    id="ethereum",
    name="Ethereum",
    chain_id=1,
    rpc_url="https://rpc.ankr.com/eth",
    quoter_address="0xb27308f9F90D607463bb33eA1BeBb41C27CE5AB6",
)


@dataclass(frozen=True)
class Token:
    """
    A tradable token.

    Attributes:
        address: Contract address, unique within a network
        symbol: Display symbol (e.g., "WETH")
        decimals: Precision of the smallest unit
        network: Id of the network the token lives on
    """

    address: str
    symbol: str
    decimals: int
    network: str

    def __post_init__(self):
        if not isinstance(self.decimals, int) or self.decimals < 0:
            raise ValidationError(
                f"Token {self.symbol} decimals must be a non-negative int: {self.decimals}"
            )

    @property
    def key(self) -> str:
        """Case-insensitive identity within the network."""
        return self.address.lower()

    def __str__(self) -> str:
        return self.symbol


@dataclass(frozen=True)
class Triple:
    """
    A directed cycle A -> B -> C -> A over three distinct tokens.

    (A, B, C) and (A, C, B) are different triples.
    """

    token1: Token
    token2: Token
    token3: Token

    def __post_init__(self):
        keys = {t.key for t in self.tokens}
        if len(keys) != 3:
            raise ValidationError(f"Triple tokens must be distinct: {self.label}")

    @property
    def tokens(self) -> Tuple[Token, Token, Token]:
        return (self.token1, self.token2, self.token3)

    @property
    def start(self) -> Token:
        """The token the cycle starts and ends in."""
        return self.token1

    @property
    def label(self) -> str:
        return " → ".join(t.symbol for t in self.tokens)

    def legs(self) -> Tuple[Tuple[Token, Token], ...]:
        """Directed (token_in, token_out) pairs in execution order."""
        a, b, c = self.tokens
        return ((a, b), (b, c), (c, a))

    def replace_token(self, position: int, token: Token) -> "Triple":
        """Return a copy with the token at 1-based ``position`` replaced."""
        if position not in (1, 2, 3):
            raise ValidationError(f"position must be 1, 2 or 3, got {position}")
        tokens = list(self.tokens)
        tokens[position - 1] = token
        return Triple(*tokens)

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class LegQuote:
    """
    Result of one successful oracle call within a chain.

    Attributes:
        step: 1-based leg index
        token_in: Token sold
        token_out: Token bought
        amount_in: Input in token_in smallest units
        amount_out: Output in token_out smallest units
    """

    step: int
    token_in: Token
    token_out: Token
    amount_in: int
    amount_out: int

    @property
    def amount_out_human(self) -> Decimal:
        return from_base_units(self.amount_out, self.token_out.decimals)

    def describe(self) -> str:
        """Debug log entry, e.g. "WETH -> USDC: 2000.000000 USDC"."""
        return (
            f"{self.token_in.symbol} -> {self.token_out.symbol}: "
            f"{format(self.amount_out_human, 'f')} {self.token_out.symbol}"
        )


@dataclass(frozen=True)
class TriangleResult:
    """
    Round-trip outcome of one triple, in starting-token units.

    Attributes:
        triple: The evaluated cycle
        profit: final_amount - initial_amount
        initial_amount: Amount of token1 put in
        final_amount: Amount of token1 received back; None for cache
            entries persisted without amounts
    """

    triple: Triple
    profit: Decimal
    initial_amount: Optional[Decimal] = None
    final_amount: Optional[Decimal] = None

    @classmethod
    def from_amounts(
        cls, triple: Triple, initial_amount: Decimal, final_amount: Decimal
    ) -> "TriangleResult":
        return cls(
            triple=triple,
            profit=final_amount - initial_amount,
            initial_amount=initial_amount,
            final_amount=final_amount,
        )

    def __str__(self) -> str:
        return f"{self.triple.label} (Profit: {format_amount(self.profit)})"


EMPTY_LEG_ERRORS: Tuple[Optional[str], Optional[str], Optional[str]] = (
    None,
    None,
    None,
)


@dataclass(frozen=True)
class ArbitrageState:
    """
    Snapshot published by the arbitrage monitor.

    A new instance replaces the previous one on every update; instances are
    never mutated.

    Attributes:
        selection: Triple being evaluated
        generation: Selection generation that produced this snapshot
        initial_amount: Starting amount in token1 units
        final_amount: Amount of token1 after the last complete cycle
        profit: final_amount - initial_amount
        leg_errors: Messages for steps 1..3; at most one is set
        failure: Typed failure behind leg_errors, if any
        debug_log: Human-readable results of the legs completed so far
        in_progress: True while a chain is in flight
    """

    selection: Triple
    generation: int = 0
    initial_amount: Decimal = Decimal("1")
    final_amount: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    leg_errors: Tuple[Optional[str], Optional[str], Optional[str]] = EMPTY_LEG_ERRORS
    failure: Optional[LegFailure] = field(default=None, compare=False)
    debug_log: Tuple[str, ...] = ()
    in_progress: bool = False

    def error_for(self, step: int) -> Optional[str]:
        """Error message for a 1-based step, or None."""
        if step not in (1, 2, 3):
            raise ValueError(f"step must be 1, 2 or 3, got {step}")
        return self.leg_errors[step - 1]

    @property
    def has_error(self) -> bool:
        return any(self.leg_errors)

    @property
    def failed_step(self) -> Optional[int]:
        return self.failure.step if self.failure else None
