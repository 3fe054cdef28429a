"""Reconciliation of National Bibliography MARC records with the newspaper store."""

from .engine import Action, Decision, classify
from .index import IdentifierIndex
from .runner import ReconcileRun, RunMode, RunState

__all__ = [
    "Action",
    "Decision",
    "IdentifierIndex",
    "ReconcileRun",
    "RunMode",
    "RunState",
    "classify",
]
