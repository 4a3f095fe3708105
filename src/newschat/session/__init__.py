"""Session orchestration: thread reconciliation and the controller."""

from .controller import Location, SessionController
from .reconciler import ThreadReconciler

__all__ = [
    "Location",
    "SessionController",
    "ThreadReconciler",
]
