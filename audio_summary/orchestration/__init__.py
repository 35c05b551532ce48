"""Concurrency primitives used by the pipeline stages."""

from .dispatcher import BoundedDispatcher, DispatchError

__all__ = ["BoundedDispatcher", "DispatchError"]
