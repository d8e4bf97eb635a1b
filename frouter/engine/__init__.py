"""Routing engine for frouter."""

from .debounce import DebounceSet
from .accumulator import EventAccumulator
from .router import FileRouter
from .router_loop import RouterLoop
from .pipeline import Pipeline

__all__ = ["DebounceSet", "EventAccumulator", "FileRouter", "RouterLoop", "Pipeline"]
