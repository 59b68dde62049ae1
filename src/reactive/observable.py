"""
Observable State Holders

DESIGN DECISION: Every piece of view state is an Observable with exactly
one writer. An Observable keeps its latest value and pushes every distinct
change to its subscribers, synchronously, on the writer's flow.

Derived observables are lazy:
- While nobody is subscribed they hold no upstream subscriptions, and
  reading .value computes a fresh snapshot.
- The first subscriber activates them; the last one leaving deactivates them.
"""

import asyncio
from typing import AsyncIterator, Callable, Generic, Optional, Sequence, TypeVar

T = TypeVar("T")
S = TypeVar("S")

_UNSET = object()


class Subscription:
    """Handle returned by Observable.subscribe; cancel() detaches the callback."""

    def __init__(self, owner: "Observable", callback: Callable):
        self._owner = owner
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._owner._remove(self)


class Observable(Generic[T]):
    """
    Holds the latest value and notifies subscribers of distinct changes.

    subscribe() delivers the current value immediately, then every change.
    """

    def __init__(self, initial=_UNSET):
        self._value = initial
        self._subscribers: list[Subscription] = []

    # -- reading -------------------------------------------------------------

    @property
    def value(self) -> T:
        if self._is_hot():
            return self._value
        return self._compute()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _is_hot(self) -> bool:
        return self._value is not _UNSET

    def _compute(self) -> T:
        raise LookupError(f"{type(self).__name__} has no value yet")

    # -- subscribing ---------------------------------------------------------

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        # Activate before registering so the activation emit is not
        # delivered on top of the initial value below.
        if not self._subscribers:
            self._on_active()
        subscription = Subscription(self, callback)
        self._subscribers.append(subscription)
        callback(self.value)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
            if not self._subscribers:
                self._on_inactive()

    async def stream(self) -> AsyncIterator[T]:
        """
        Iterate over the current value and every later change.

        The subscription is cancelled when the consumer stops iterating.
        """
        queue: asyncio.Queue = asyncio.Queue()
        subscription = self.subscribe(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            subscription.cancel()

    # -- writing (owner only) ------------------------------------------------

    def _emit(self, value: T) -> None:
        if self._value is not _UNSET and value == self._value:
            return
        self._value = value
        for subscription in list(self._subscribers):
            if subscription.active:
                subscription.callback(value)

    def _on_active(self) -> None:
        pass

    def _on_inactive(self) -> None:
        pass


class MutableState(Observable[T]):
    """An Observable whose owner sets the value directly."""

    def __init__(self, initial: T):
        super().__init__(initial)

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._emit(new_value)

    def update(self, fn: Callable[[T], T]) -> None:
        self._emit(fn(self._value))


class Derived(Observable[T]):
    """Recomputes from its sources whenever any of them changes."""

    def __init__(self, sources: Sequence[Observable], fn: Callable[..., T]):
        super().__init__()
        self._sources = list(sources)
        self._fn = fn
        self._upstream: list[Subscription] = []
        self._activating = False

    def _compute(self) -> T:
        return self._fn(*(source.value for source in self._sources))

    def _recompute(self, _changed=None) -> None:
        if not self._activating:
            self._emit(self._compute())

    def _on_active(self) -> None:
        self._activating = True
        try:
            self._upstream = [source.subscribe(self._recompute) for source in self._sources]
        finally:
            self._activating = False
        self._emit(self._compute())

    def _on_inactive(self) -> None:
        for subscription in self._upstream:
            subscription.cancel()
        self._upstream = []
        self._value = _UNSET


class SwitchMap(Observable[T]):
    """
    Follows the observable produced for the latest source value.

    When the source changes, the previous inner observable is dropped
    and the new one is subscribed.
    """

    def __init__(self, source: Observable[S], fn: Callable[[S], Observable[T]]):
        super().__init__()
        self._source = source
        self._fn = fn
        self._outer: Optional[Subscription] = None
        self._inner: Optional[Subscription] = None

    def _compute(self) -> T:
        return self._fn(self._source.value).value

    def _switch(self, source_value: S) -> None:
        if self._inner is not None:
            self._inner.cancel()
        self._inner = self._fn(source_value).subscribe(self._emit)

    def _on_active(self) -> None:
        self._outer = self._source.subscribe(self._switch)

    def _on_inactive(self) -> None:
        if self._outer is not None:
            self._outer.cancel()
            self._outer = None
        if self._inner is not None:
            self._inner.cancel()
            self._inner = None
        self._value = _UNSET


def derive(sources: Sequence[Observable], fn: Callable[..., T]) -> Derived[T]:
    """Combine one or more observables into a derived one."""
    return Derived(sources, fn)


def switch_map(source: Observable[S], fn: Callable[[S], Observable[T]]) -> SwitchMap[T]:
    """Map each source value to an observable and follow the latest one."""
    return SwitchMap(source, fn)
