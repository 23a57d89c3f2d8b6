import abc
import asyncio
import itertools
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from loguru import logger

from cryptoview.adapters.base import MarketDataSource
from cryptoview.errors import NetworkError
from cryptoview.models import (
    DETAILS_ROUTE,
    ChartSeries,
    CoinSummary,
    DetailPayload,
    Failed,
    HistoryInterval,
    NavigationRequest,
    Pending,
    Ready,
    ScreenState,
)
from cryptoview.transform import DEFAULT_CHART_WINDOW, to_chart_series

T = TypeVar("T")

DEFAULT_ACTIVATION_TIMEOUT_S = 30.0
DEFAULT_HISTORY_DAYS = 7

FETCH_FAILED_MESSAGE = "Error Fetching Data. Try Again Later"

StateListener = Callable[[ScreenState], None]


class ScreenController(abc.ABC, Generic[T]):
    """Base class for screen controllers.

    A controller owns the state of one screen. Each call to `activate` starts
    a fresh activation with its own token: the state is reset to Pending and
    the screen's data is fetched exactly once in a background task. The
    activation settles into Ready or Failed and stays there; results that
    arrive for an activation that is no longer current are discarded.
    """

    def __init__(
        self,
        source: MarketDataSource,
        timeout_s: float | None = DEFAULT_ACTIVATION_TIMEOUT_S,
    ) -> None:
        """Initializes the controller.

        Args:
            source: The market data source to fetch from.
            timeout_s: Upper bound on how long an activation may stay Pending.
                None disables the bound.
        """
        self._source = source
        self._timeout_s = timeout_s
        self._tokens = itertools.count(1)
        self._active_token: int | None = None
        self._state: ScreenState = Pending()
        self._task: asyncio.Task[None] | None = None
        self._listeners: list[StateListener] = []

    @property
    @abc.abstractmethod
    def screen_name(self) -> str:
        """A short name for the screen, used in log messages."""
        raise NotImplementedError

    @abc.abstractmethod
    async def _load(self) -> T:
        """Fetches the screen's payload. Raises NetworkError on failure."""
        raise NotImplementedError

    @property
    def state(self) -> ScreenState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._active_token is not None

    def add_listener(self, listener: StateListener) -> None:
        """Registers a callback invoked with every state change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def activate(self) -> int:
        """Starts a fresh activation and returns its token.

        Any activation still in flight is deactivated first. Must be called
        from a running event loop.
        """
        if self._active_token is not None:
            self.deactivate()

        token = next(self._tokens)
        self._active_token = token
        self._set_state(Pending())
        self._task = asyncio.create_task(self._run(token))
        logger.info(f"[{self.screen_name}] Activation {token} started.")
        return token

    def deactivate(self) -> None:
        """Ends the current activation; its pending result will be discarded."""
        if self._active_token is None:
            return
        logger.info(f"[{self.screen_name}] Activation {self._active_token} ended.")
        self._active_token = None
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> ScreenState:
        """Waits for the current activation's fetch to finish, if any."""
        task = self._task
        if task is not None:
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self._state

    async def _run(self, token: int) -> None:
        try:
            if self._timeout_s is None:
                payload = await self._load()
            else:
                payload = await asyncio.wait_for(self._load(), timeout=self._timeout_s)
        except NetworkError as e:
            logger.warning(f"[{self.screen_name}] Fetch failed: {e}")
            self._settle(token, Failed(FETCH_FAILED_MESSAGE, reason=str(e)))
        except asyncio.TimeoutError:
            logger.warning(
                f"[{self.screen_name}] Fetch timed out after {self._timeout_s}s."
            )
            self._settle(token, Failed(FETCH_FAILED_MESSAGE, reason="timeout"))
        except Exception as e:
            logger.exception(f"[{self.screen_name}] Unexpected error while fetching.")
            self._settle(token, Failed(FETCH_FAILED_MESSAGE, reason=repr(e)))
        else:
            self._settle(token, Ready(payload))

    def _settle(self, token: int, new_state: ScreenState) -> None:
        """Applies a terminal state if `token` is still the current activation."""
        if token != self._active_token:
            logger.debug(
                f"[{self.screen_name}] Discarding result of stale activation {token}."
            )
            return
        if not isinstance(self._state, Pending):
            logger.debug(
                f"[{self.screen_name}] Activation {token} already settled; ignoring."
            )
            return
        self._set_state(new_state)
        logger.info(
            f"[{self.screen_name}] Activation {token} settled: "
            f"{type(new_state).__name__}."
        )

    def _set_state(self, new_state: ScreenState) -> None:
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception(f"[{self.screen_name}] State listener failed.")


class ListScreenController(ScreenController[list[CoinSummary]]):
    """Controller for the ranked coin list."""

    def __init__(
        self,
        source: MarketDataSource,
        navigate: Callable[[NavigationRequest], Any],
        timeout_s: float | None = DEFAULT_ACTIVATION_TIMEOUT_S,
    ) -> None:
        """Initializes the list controller.

        Args:
            source: The market data source to fetch from.
            navigate: Callback receiving navigation requests for selected coins.
            timeout_s: Upper bound on how long an activation may stay Pending.
        """
        super().__init__(source, timeout_s)
        self._navigate = navigate

    @property
    def screen_name(self) -> str:
        return "list"

    @property
    def coins(self) -> list[CoinSummary]:
        """The loaded collection, or an empty list when not Ready."""
        state = self._state
        return state.payload if isinstance(state, Ready) else []

    async def _load(self) -> list[CoinSummary]:
        return await self._source.fetch_ranked_coins()

    def select_coin(self, coin_id: str) -> NavigationRequest:
        """Requests navigation to the detail screen for `coin_id`."""
        if not coin_id:
            err_msg = "coin_id must be a non-empty identifier."
            raise ValueError(err_msg)
        request = NavigationRequest(route=DETAILS_ROUTE, coin_id=coin_id)
        logger.info(f"[{self.screen_name}] Navigating to details for '{coin_id}'.")
        self._navigate(request)
        return request


class DetailScreenController(ScreenController[DetailPayload]):
    """Controller for one coin's detail screen.

    The detail and the price history are fetched concurrently and joined;
    the screen is Ready only if both succeed.
    """

    def __init__(
        self,
        source: MarketDataSource,
        coin_id: str,
        history_days: int = DEFAULT_HISTORY_DAYS,
        interval: HistoryInterval = HistoryInterval.DAILY,
        chart_window: int = DEFAULT_CHART_WINDOW,
        timeout_s: float | None = DEFAULT_ACTIVATION_TIMEOUT_S,
    ) -> None:
        super().__init__(source, timeout_s)
        self.coin_id = coin_id
        self.history_days = history_days
        self.interval = interval
        self.chart_window = chart_window

    @property
    def screen_name(self) -> str:
        return f"detail:{self.coin_id}"

    async def _load(self) -> DetailPayload:
        results = await asyncio.gather(
            self._source.fetch_coin_detail(self.coin_id),
            self._source.fetch_coin_history(
                self.coin_id, self.history_days, self.interval
            ),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        detail, history = results
        return DetailPayload(detail=detail, history=history)

    def chart_series(self) -> ChartSeries | None:
        """Returns the chart-ready history when Ready, otherwise None."""
        state = self._state
        if not isinstance(state, Ready):
            return None
        return to_chart_series(state.payload.history, window=self.chart_window)
