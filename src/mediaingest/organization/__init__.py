"""Routing of classified files into library tiers."""

from .dedupe import sweep_queue_duplicates
from .executor import TransferExecutor, is_duplicate
from .models import RouteRecord, Tier, TransferOutcome, TransferResult
from .planner import bucket_name, destination_for

__all__ = [
    "RouteRecord",
    "Tier",
    "TransferExecutor",
    "TransferOutcome",
    "TransferResult",
    "bucket_name",
    "destination_for",
    "is_duplicate",
    "sweep_queue_duplicates",
]
