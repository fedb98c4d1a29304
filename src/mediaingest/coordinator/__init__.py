"""Run coordination: locking, stage ordering and the top-level run."""

from .lock import InstanceLock
from .service import RunCoordinator
from .stages import (
    RouteStage,
    RunContext,
    RunPhase,
    RunReport,
    Stage,
    TaggingStage,
    build_stages,
)

__all__ = [
    "InstanceLock",
    "RouteStage",
    "RunContext",
    "RunCoordinator",
    "RunPhase",
    "RunReport",
    "Stage",
    "TaggingStage",
    "build_stages",
]
