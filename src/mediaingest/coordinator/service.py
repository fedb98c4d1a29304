"""Run coordinator: one locked pass from claim to cleanup."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from mediaingest.classification import ContentClassifier
from mediaingest.config import IngestConfig
from mediaingest.ingestion import DirectoryScanner, StabilityDetector
from mediaingest.ingestion.detectors import (
    FFprobeProber,
    MagicSniffer,
    MimeSniffer,
    StreamProber,
)
from mediaingest.logsetup import RUN_LOGGER_NAME
from mediaingest.organization import TransferExecutor, bucket_name
from mediaingest.state import QueueRepository, RunQueue
from mediaingest.tagging import BeetsTagger, Tagger

from .lock import InstanceLock
from .stages import RunContext, RunPhase, RunReport, Stage, build_stages

LOGGER = logging.getLogger(__name__)


class RunCoordinator:
    """Orchestrate claim, tagging, routing and cleanup under a single-instance lock."""

    def __init__(
        self,
        config: IngestConfig,
        *,
        prober: Optional[StreamProber] = None,
        sniffer: Optional[MimeSniffer] = None,
        tagger: Optional[Tagger] = None,
        detector: Optional[StabilityDetector] = None,
        scanner: Optional[DirectoryScanner] = None,
        executor: Optional[TransferExecutor] = None,
        clock: Callable[[], datetime] = datetime.now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            config: Loaded configuration; every path and threshold comes from here.
            prober: Stream probing capability (defaults to ``ffprobe``).
            sniffer: MIME sniffing capability (defaults to python-magic).
            tagger: Tagging capability (defaults to ``beet import``).
            detector: Stability detector (defaults to the configured policy).
            scanner: Drop-root scanner.
            executor: Transfer executor shared by routing stages.
            clock: Source of the run timestamp used for run ids and buckets.
            logger: Run log; defaults to the ``mediaingest`` logger.
        """

        self._config = config
        paths = config.paths
        self._prober = prober or FFprobeProber(
            config.probing.ffprobe_binary, config.probing.timeout_seconds
        )
        self._sniffer = sniffer or MagicSniffer()
        self._tagger = tagger or BeetsTagger(
            config.tagging.command, config.tagging.timeout_seconds
        )
        self._detector = detector or StabilityDetector(config.stability)
        self._scanner = scanner or DirectoryScanner(
            include_hidden=config.stability.include_hidden,
            exclude=[paths.queue_root],
        )
        self._executor = executor or TransferExecutor()
        self._clock = clock
        self._log = logger or logging.getLogger(RUN_LOGGER_NAME)
        self._repository = QueueRepository(paths.queue_root)
        self._classifier = ContentClassifier(self._prober, self._sniffer)

    def stages(self) -> list[Stage]:
        """Return the configured passes in execution order."""
        return build_stages(
            self._config,
            prober=self._prober,
            tagger=self._tagger,
            executor=self._executor,
        )

    def run_once(self) -> Optional[RunReport]:
        """Execute one run.

        Returns:
            Optional[RunReport]: Report of the run, or ``None`` when another
            instance holds the lock.

        Raises:
            QueueError: If the queue root or run directory cannot be created.
            OSError: If the lock file, drop root or a library directory cannot be created.
        """

        lock = InstanceLock(self._config.paths.lock_file)
        if not lock.acquire():
            LOGGER.debug("Another run holds %s; exiting.", lock.path)
            return None
        try:
            return self._run_locked()
        finally:
            lock.release()

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _run_locked(self) -> RunReport:
        report = RunReport(phases=[RunPhase.LOCK_ACQUIRED])
        now = self._clock()
        paths = self._config.paths

        paths.drop_root.mkdir(parents=True, exist_ok=True)
        self._repository.initialize()

        queue = self._repository.find_resumable()
        if queue is not None:
            report.resumed = True
            report.run_id = queue.run_id
            report.claimed = len(queue.files())
            self._log.info(
                "==== RUN RESUME (%s, %d files queued) ====", queue.run_id, report.claimed
            )
        else:
            report.phases.append(RunPhase.CLAIMING)
            queue = self._claim(now)
            if queue is None:
                report.phases.append(RunPhase.IDLE)
                return report
            report.run_id = queue.run_id
            report.claimed = len(queue.files())
            self._log.info("==== RUN START (%d files claimed) ====", report.claimed)

        context = RunContext(
            queue=queue,
            bucket=bucket_name(now, self._config.routing.bucket_format),
            classifier=self._classifier,
            report=report,
            log=self._log,
        )
        for stage in self.stages():
            report.phases.append(stage.phase)
            stage.run(context)

        report.phases.append(RunPhase.CLEANUP)
        self._cleanup(queue, report)
        self._log.info("==== RUN END ====")
        report.phases.append(RunPhase.IDLE)
        return report

    def _claim(self, now: datetime) -> Optional[RunQueue]:
        drop_root = self._config.paths.drop_root
        self._repository.discard_empty_runs()
        snapshot = self._scanner.snapshot(drop_root)
        if not snapshot.entries:
            return None
        stable = self._detector.select_stable(snapshot)
        if not stable:
            LOGGER.debug("%d file(s) in %s, none stable yet.", len(snapshot), drop_root)
            return None
        return self._repository.claim(snapshot.root, stable, now)

    def _cleanup(self, queue: RunQueue, report: RunReport) -> None:
        queue.prune_empty_dirs()
        if queue.remove_if_empty():
            report.remaining = 0
            return
        report.remaining = len(queue.files())
        self._log.info(
            "Queue %s retained with %d file(s) for the next run", queue.run_id, report.remaining
        )


__all__ = ["RunCoordinator"]
