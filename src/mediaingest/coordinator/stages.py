"""The ordered passes a run applies to its queue.

Each stage re-lists the queue when it starts, so a file routed by an earlier
stage is invisible to later ones. Stages only need a :class:`RunContext`,
which lets tests drive a single stage against a prepared queue directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Optional, Protocol

from mediaingest.classification import ContentClassifier, MediaClass
from mediaingest.config.models import CollisionPolicy, IngestConfig
from mediaingest.ingestion.detectors import StreamProber
from mediaingest.organization import (
    RouteRecord,
    Tier,
    TransferExecutor,
    TransferOutcome,
    destination_for,
)
from mediaingest.state import RunQueue
from mediaingest.tagging import Tagger, TaggingInvoker


class RunPhase(str, Enum):
    """States a run moves through, in order."""

    IDLE = "idle"
    LOCK_ACQUIRED = "lock_acquired"
    CLAIMING = "claiming"
    TAGGING = "tagging"
    ROUTING_VIDEO = "routing_video"
    ROUTING_AUDIO = "routing_audio"
    ROUTING_IMAGE = "routing_image"
    ROUTING_MISC = "routing_misc"
    CLEANUP = "cleanup"


_ROUTING_PHASES = {
    Tier.VIDEO: RunPhase.ROUTING_VIDEO,
    Tier.AUDIO: RunPhase.ROUTING_AUDIO,
    Tier.IMAGE: RunPhase.ROUTING_IMAGE,
    Tier.MISC: RunPhase.ROUTING_MISC,
}


@dataclass(slots=True)
class RunReport:
    """Outcome metadata describing one invocation.

    Attributes:
        run_id: Identifier of the queue processed, if any.
        resumed: Whether an interrupted queue was resumed instead of claiming.
        claimed: Files claimed (or found queued, when resuming).
        phases: Phases visited, in order.
        routed: Successful routing decisions.
        failed: Transfers that left the file in the queue.
        held: Queue-relative paths held back by a failed sanity probe.
        tagged: Successful tagging calls.
        tag_failures: Failed tagging calls.
        remaining: Files still queued after cleanup.
    """

    run_id: Optional[str] = None
    resumed: bool = False
    claimed: int = 0
    phases: list[RunPhase] = field(default_factory=list)
    routed: list[RouteRecord] = field(default_factory=list)
    failed: list[RouteRecord] = field(default_factory=list)
    held: list[Path] = field(default_factory=list)
    tagged: int = 0
    tag_failures: int = 0
    remaining: int = 0

    def routed_to(self, tier: Tier) -> list[RouteRecord]:
        """Return successful routing records for ``tier``."""
        return [record for record in self.routed if record.tier is tier]


@dataclass(slots=True)
class RunContext:
    """Everything a stage needs to process the current queue."""

    queue: RunQueue
    bucket: str
    classifier: ContentClassifier
    report: RunReport
    log: logging.Logger


class Stage(Protocol):
    """One pass over the run queue."""

    phase: RunPhase

    def run(self, context: RunContext) -> None: ...


class TaggingStage:
    """Hand every sane audio file in the queue to the tagging tool."""

    phase = RunPhase.TAGGING

    def __init__(self, tagger: Tagger) -> None:
        self._tagger = tagger

    def run(self, context: RunContext) -> None:
        queue = context.queue
        sane: list[Path] = []
        for path in queue.files():
            media_class = context.classifier.classify(path)
            if media_class is MediaClass.SANE_AUDIO:
                sane.append(path)
            elif media_class is MediaClass.AMBIGUOUS_AUDIO:
                context.log.info("Sanity probe failed, not tagging: %s", queue.relative(path))

        invoker = TaggingInvoker(self._tagger, context.log)
        succeeded, failed = invoker.invoke(sane, describe=queue.relative)
        context.report.tagged += succeeded
        context.report.tag_failures += failed


class RouteStage:
    """Transfer every queued file of the accepted classes into one library tier."""

    def __init__(
        self,
        tier: Tier,
        root: Path,
        accepts: FrozenSet[MediaClass],
        *,
        policy: CollisionPolicy = "fail",
        executor: Optional[TransferExecutor] = None,
        sanity_prober: Optional[StreamProber] = None,
        big_file_bytes: Optional[int] = None,
    ) -> None:
        self.tier = tier
        self.root = root
        self.accepts = accepts
        self.policy = policy
        self.phase = _ROUTING_PHASES[tier]
        self._executor = executor or TransferExecutor()
        self._sanity_prober = sanity_prober
        self._big_file_bytes = big_file_bytes

    def run(self, context: RunContext) -> None:
        queue = context.queue
        for path in queue.files():
            if context.classifier.classify(path) not in self.accepts:
                continue
            relative = queue.relative(path)

            if not self._passes_sanity_probe(path):
                context.log.info("Sanity probe failed: %s", relative)
                context.report.held.append(relative)
                continue

            destination = destination_for(relative, self.root, context.bucket)
            result = self._executor.transfer(path, destination, self.policy)
            record = RouteRecord(tier=self.tier, relative=relative, result=result)
            if result.ok:
                context.report.routed.append(record)
                context.log.info(
                    "%s -> %s%s", self.tier.label, result.destination, _suffix(result.outcome)
                )
            else:
                context.report.failed.append(record)
                context.log.warning(
                    "%s transfer failed: %s -> %s (%s)",
                    self.tier.label,
                    relative,
                    result.destination,
                    result.reason,
                )

    def _passes_sanity_probe(self, path: Path) -> bool:
        if self._sanity_prober is None or self._big_file_bytes is None:
            return True
        try:
            size = path.stat().st_size
        except OSError:
            return False
        if size <= self._big_file_bytes:
            return True
        return self._sanity_prober.probe(path).parses_ok


def _suffix(outcome: TransferOutcome) -> str:
    if outcome is TransferOutcome.DUPLICATE:
        return " (duplicate)"
    if outcome is TransferOutcome.RENAMED:
        return " (renamed)"
    return ""


def build_stages(
    config: IngestConfig,
    *,
    prober: StreamProber,
    tagger: Tagger,
    executor: Optional[TransferExecutor] = None,
) -> list[Stage]:
    """Return the stages of a run in their fixed order.

    Tagging runs first so the tool sees files at their queued layout, then
    video, audio, images (when an image root is configured) and finally the
    misc catch-all for whatever earlier passes did not take.
    """

    executor = executor or TransferExecutor()
    paths = config.paths
    routing = config.routing

    stages: list[Stage] = []
    if config.tagging.enabled:
        stages.append(TaggingStage(tagger))

    stages.append(
        RouteStage(
            Tier.VIDEO,
            paths.video_root,
            frozenset({MediaClass.VIDEO}),
            policy=routing.video_collision,
            executor=executor,
            sanity_prober=prober,
            big_file_bytes=config.probing.big_file_bytes,
        )
    )
    stages.append(
        RouteStage(
            Tier.AUDIO,
            paths.audio_root,
            frozenset({MediaClass.SANE_AUDIO}),
            policy=routing.audio_collision,
            executor=executor,
        )
    )

    misc_accepts = {MediaClass.OTHER, MediaClass.AMBIGUOUS_AUDIO}
    if paths.image_root is not None:
        stages.append(
            RouteStage(
                Tier.IMAGE,
                paths.image_root,
                frozenset({MediaClass.IMAGE}),
                policy=routing.image_collision,
                executor=executor,
            )
        )
    else:
        misc_accepts.add(MediaClass.IMAGE)

    stages.append(
        RouteStage(
            Tier.MISC,
            paths.misc_root,
            frozenset(misc_accepts),
            policy=routing.misc_collision,
            executor=executor,
        )
    )
    return stages


__all__ = [
    "RouteStage",
    "RunContext",
    "RunPhase",
    "RunReport",
    "Stage",
    "TaggingStage",
    "build_stages",
]
