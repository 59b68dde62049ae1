"""
Reactive Package

Publish/subscribe state holders used by the view layer and live queries
used by the storage layer.
"""

from src.reactive.live_query import ChangeNotifier, LiveQuery
from src.reactive.observable import (
    Derived,
    MutableState,
    Observable,
    Subscription,
    SwitchMap,
    derive,
    switch_map,
)
from src.reactive.signals import OneShotSignal

__all__ = [
    "ChangeNotifier",
    "Derived",
    "LiveQuery",
    "MutableState",
    "Observable",
    "OneShotSignal",
    "Subscription",
    "SwitchMap",
    "derive",
    "switch_map",
]
