"""Per-method mock control state and call log."""

import enum
import inspect
import logging
import threading
from collections import deque
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

STATES_ATTR = "_moxie_states"


class Mode(enum.Enum):
    """What a proxy method does when called."""

    PASSTHROUGH = "passthrough"
    FIXED_RETURN = "fixed_return"
    DYNAMIC = "dynamic"


class MockControlState:
    """Mode, payload and call log of one proxied method on one instance.

    Appending to the call log and selecting the behavior for a call happen
    under one lock. The real or fake implementation runs outside it, so
    concurrent callers are recorded in the order they arrived without being
    serialized through the mock.
    """

    def __init__(
        self,
        method: str,
        result_count: int,
        zero_values: tuple[Any, ...] | None = None,
    ):
        """Initialize in passthrough mode with an empty call log.

        Args:
            method: Qualified method name, used in messages
            result_count: Number of values one call returns
            zero_values: Results used by stub(); defaults to all None
        """
        if zero_values is None:
            zero_values = (None,) * result_count
        if len(zero_values) != result_count:
            raise ValueError(
                f"{method}: {len(zero_values)} zero values for {result_count} results"
            )

        self.method = method
        self.result_count = result_count
        self._zero_values = tuple(zero_values)
        self._lock = threading.Lock()
        self._mode = Mode.PASSTHROUGH
        self._returns: deque[tuple[Any, ...]] = deque()
        self._fake: Callable[..., Any] | None = None
        self._calls: list[Any] = []

    @property
    def mode(self) -> Mode:
        with self._lock:
            return self._mode

    def stub(self) -> None:
        """Return zero values from every call."""
        self.return_values(self._zero_values)

    def return_values(self, *results: tuple[Any, ...]) -> None:
        """Return the given result tuples, one per call.

        The last tuple is repeated once the others have been used.

        Raises:
            TypeError: If no tuple is given or a tuple has the wrong length
        """
        if not results:
            raise TypeError(f"{self.method}: at least one result tuple is required")
        for values in results:
            if len(values) != self.result_count:
                raise TypeError(
                    f"{self.method} returns {self.result_count} values, "
                    f"got {len(values)}"
                )

        with self._lock:
            self._mode = Mode.FIXED_RETURN
            self._returns = deque(tuple(values) for values in results)
            self._fake = None
        logger.debug(f"{self.method}: fixed return ({len(results)} queued)")

    def do(self, fake: Callable[..., Any] | None) -> None:
        """Call fake instead of the real implementation.

        Passing None goes back to passthrough.
        """
        if fake is None:
            self.passthrough()
            return
        if not callable(fake):
            raise TypeError(f"{self.method}: fake must be callable, got {fake!r}")

        with self._lock:
            self._mode = Mode.DYNAMIC
            self._fake = fake
            self._returns.clear()
        logger.debug(f"{self.method}: dynamic ({getattr(fake, '__name__', fake)})")

    def passthrough(self) -> None:
        """Call the real implementation again. The call log is kept."""
        with self._lock:
            self._mode = Mode.PASSTHROUGH
            self._fake = None
            self._returns.clear()
        logger.debug(f"{self.method}: passthrough")

    def calls(self) -> list[Any]:
        """Snapshot of the call records, oldest first."""
        with self._lock:
            return list(self._calls)

    def enter(self, record: Any) -> tuple[Mode, Any]:
        """Record a call and select what it does.

        Returns:
            The mode at the time of the call and its payload: a result tuple
            for FIXED_RETURN, the fake for DYNAMIC, None for PASSTHROUGH
        """
        with self._lock:
            self._calls.append(record)
            if self._mode is Mode.FIXED_RETURN:
                if len(self._returns) > 1:
                    return self._mode, self._returns.popleft()
                return self._mode, self._returns[0]
            if self._mode is Mode.DYNAMIC:
                return self._mode, self._fake
            return self._mode, None

    def dispatch(
        self,
        record: Any,
        real: Callable[[], Callable[..., Any]],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        """Handle one call of a synchronous proxy.

        Args:
            record: The call record to append
            real: Returns the bound real method; only called in passthrough
            args: Positional arguments as received
            kwargs: Keyword arguments as received
        """
        mode, payload = self.enter(record)
        if mode is Mode.FIXED_RETURN:
            return self.pack(payload)
        if mode is Mode.DYNAMIC:
            return payload(*args, **kwargs)
        return real()(*args, **kwargs)

    async def dispatch_async(
        self,
        record: Any,
        real: Callable[[], Callable[..., Any]],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        """Handle one call of a coroutine proxy.

        A fake may be a plain function or a coroutine function.
        """
        mode, payload = self.enter(record)
        if mode is Mode.FIXED_RETURN:
            return self.pack(payload)
        if mode is Mode.DYNAMIC:
            result = payload(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        return await real()(*args, **kwargs)

    def pack(self, values: tuple[Any, ...]) -> Any:
        """Turn a result tuple into what the method returns."""
        if self.result_count == 0:
            return None
        if self.result_count == 1:
            return values[0]
        return tuple(values)


def state_for(
    instance: Any, method: str, factory: Callable[[], MockControlState]
) -> MockControlState:
    """Get the control state of a method on an instance, creating it once.

    States live in the instance's ``__dict__``; dict.setdefault keeps
    concurrent first calls on the same state.

    Raises:
        TypeError: If the instance has no ``__dict__``
    """
    try:
        attrs = vars(instance)
    except TypeError:
        raise TypeError(
            f"{type(instance).__qualname__} instances have no __dict__ "
            "to hold mock state"
        ) from None

    states = attrs.get(STATES_ATTR)
    if states is None:
        states = attrs.setdefault(STATES_ATTR, {})

    state = states.get(method)
    if state is None:
        state = states.setdefault(method, factory())
    return state
