"""
Continuous evaluation of one selected triple.

The monitor re-quotes its selection every ``interval_sec`` seconds. Each
selection change bumps a generation counter, cancels the running task and
starts a new one immediately; a snapshot is only committed while its
generation is still current, so a superseded chain can never overwrite the
state of a newer selection.
"""

import asyncio
import logging
from dataclasses import replace
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from .catalog import default_selection
from .chain import quote_triangle
from .exceptions import LegFailure
from .quoter import QuoteSource
from .types import (
    EMPTY_LEG_ERRORS,
    ArbitrageState,
    LegQuote,
    Token,
    TriangleResult,
    Triple,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SEC = 30.0

StateCallback = Callable[[ArbitrageState], None]


class ArbitrageMonitor:
    """
    Owns the ArbitrageState of one selected triple.

    States: idle (waiting for the next tick) and evaluating (a chain in
    flight, ``state.in_progress``). At most one chain per monitor is in
    flight at a time.
    """

    def __init__(
        self,
        oracle: QuoteSource,
        selection: Triple,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
        starting_amount: Decimal = Decimal("1"),
        on_update: Optional[StateCallback] = None,
    ):
        """
        Args:
            oracle: Quote source for every leg
            selection: Initial triple
            interval_sec: Idle time between evaluations of the same selection
            starting_amount: Amount of token1 each evaluation starts with
            on_update: Called with every committed snapshot
        """
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be positive: {interval_sec}")

        self.oracle = oracle
        self.interval_sec = interval_sec
        self.starting_amount = Decimal(str(starting_amount))
        self.on_update = on_update

        self._generation = 0
        self._state = self._fresh_state(selection)
        self._task: Optional["asyncio.Task[None]"] = None
        self._running = False
        self._idle = asyncio.Event()
        self._idle.set()

    # ----- read side -----

    @property
    def state(self) -> ArbitrageState:
        return self._state

    @property
    def selection(self) -> Triple:
        return self._state.selection

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def running(self) -> bool:
        return self._running

    # ----- lifecycle -----

    def start(self) -> None:
        """Begin evaluating the current selection now and on every tick."""
        if self._running:
            return
        self._running = True
        self._launch()

    async def stop(self) -> None:
        """
        Cancel the periodic task.

        The last committed state is kept; a chain cut off mid-flight leaves
        it marked as no longer in progress.
        """
        self._running = False
        await self._cancel_task()
        if self._state.in_progress:
            self._commit(self._generation, replace(self._state, in_progress=False))
        self._idle.set()

    async def __aenter__(self) -> "ArbitrageMonitor":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def wait_idle(self) -> ArbitrageState:
        """Wait until the current generation's evaluation has finished."""
        await self._idle.wait()
        return self._state

    # ----- selection -----

    def select(self, triple: Triple) -> int:
        """
        Make ``triple`` the selection.

        Errors and the debug log are cleared at once and, when running, a new
        evaluation starts without waiting for the next tick.

        Returns:
            The new selection generation
        """
        self._generation += 1
        self._cancel_pending()
        self._commit(self._generation, self._fresh_state(triple))
        logger.info(f"Selected {triple.label} (generation {self._generation})")
        if self._running:
            self._launch()
        return self._generation

    def apply_suggestion(self, suggestion: TriangleResult) -> int:
        """Switch to a suggested triple and evaluate it immediately."""
        return self.select(suggestion.triple)

    def set_token(self, position: int, token: Token) -> int:
        """
        Replace the token at 1-based ``position`` of the current selection.

        Raises:
            ValidationError: If the token is already used at another position
        """
        return self.select(self.selection.replace_token(position, token))

    def reset(self, catalog: Sequence[Token]) -> int:
        """Select the first three catalog tokens."""
        return self.select(default_selection(catalog))

    def refresh(self) -> int:
        """Re-evaluate the current selection now, superseding any chain in flight."""
        self._generation += 1
        self._cancel_pending()
        self._commit(self._generation, replace(self._state, generation=self._generation))
        if self._running:
            self._launch()
        return self._generation

    # ----- evaluation -----

    async def evaluate(self, generation: Optional[int] = None) -> ArbitrageState:
        """
        Run one three-leg chain for the selection of ``generation``.

        Snapshots are published after every successful leg and at the end.
        Nothing is committed once ``generation`` has been superseded.

        Returns:
            This evaluation's final snapshot (committed or not)
        """
        gen = self._generation if generation is None else generation
        base = self._state
        triple = base.selection

        current = replace(
            base,
            generation=gen,
            in_progress=True,
            leg_errors=EMPTY_LEG_ERRORS,
            failure=None,
            debug_log=(),
        )
        self._commit(gen, current)

        debug: List[str] = []

        def on_leg(leg: LegQuote) -> None:
            nonlocal current
            debug.append(leg.describe())
            current = replace(current, debug_log=tuple(debug))
            self._commit(gen, current)

        try:
            result = await quote_triangle(
                self.oracle, triple, self.starting_amount, on_leg=on_leg
            )
        except LegFailure as e:
            errors = list(EMPTY_LEG_ERRORS)
            errors[e.step - 1] = str(e)
            current = replace(
                current,
                in_progress=False,
                leg_errors=tuple(errors),
                failure=e,
                debug_log=tuple(debug),
            )
            if gen == self._generation:
                logger.warning(f"{triple.label}: {e}")
        else:
            current = replace(
                current,
                initial_amount=result.initial_amount,
                final_amount=result.final_amount,
                profit=result.profit,
                in_progress=False,
                leg_errors=EMPTY_LEG_ERRORS,
                failure=None,
                debug_log=tuple(debug),
            )
            if gen == self._generation:
                logger.info(f"{triple.label}: profit {result.profit}")

        self._commit(gen, current)
        return current

    # ----- internals -----

    def _fresh_state(self, triple: Triple) -> ArbitrageState:
        return ArbitrageState(
            selection=triple,
            generation=self._generation,
            initial_amount=self.starting_amount,
        )

    def _commit(self, generation: int, state: ArbitrageState) -> bool:
        if generation != self._generation:
            logger.debug(
                f"Dropping stale snapshot for {state.selection.label} "
                f"(generation {generation}, current {self._generation})"
            )
            return False
        self._state = state
        if self.on_update is not None:
            self.on_update(state)
        return True

    def _launch(self) -> None:
        self._idle.clear()
        self._task = asyncio.create_task(self._run(self._generation))

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _cancel_task(self) -> None:
        task = self._task
        self._cancel_pending()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self, generation: int) -> None:
        while self._running and generation == self._generation:
            self._idle.clear()
            try:
                await self.evaluate(generation)
            except Exception as e:
                logger.error(f"Evaluation failed: {e}", exc_info=True)
                self._commit(generation, replace(self._state, in_progress=False))
            if generation == self._generation:
                self._idle.set()
            await asyncio.sleep(self.interval_sec)
