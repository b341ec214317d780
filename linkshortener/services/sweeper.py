"""Periodic removal of expired links and their QR artifacts

A sweep runs in phases:

    1. list     links whose expiry lies before now
    2. artifact delete the QR codes of those links (failure is logged, sweep continues)
    3. record   delete the link records (failure is logged, retried next tick)

Sweeps are serialized through a shared Redis lock: a tick that finds the lock
held by another sweep is skipped rather than queued. A stop requested while a
tick is running lets the tick finish its current phase. Once artifacts are
being deleted, the records are always deleted too, so a shutdown never leaves
links pointing at QR codes that no longer exist.
"""

import logging
import threading
from dataclasses import dataclass, asdict
from datetime import datetime, UTC
from typing import Any

import redis

from linkshortener.constants import Defaults
from linkshortener.dao.base import LinkBaseDAO, ArtifactBaseStore
from linkshortener.dao.exceptions import ArtifactError, DAOError


logger = logging.getLogger(__name__)

SWEEP_SKIPPED = 'SWEEP_SKIPPED'
SWEEP_STOPPED = 'SWEEP_STOPPED'
SWEEP_ARTIFACTS_FAILED = 'SWEEP_ARTIFACTS_FAILED'
SWEEP_RECORDS_FAILED = 'SWEEP_RECORDS_FAILED'
SWEEP_COMPLETED = 'SWEEP_COMPLETED'


# fmt: off
@dataclass
class SweepReport:
    expired: int = 0                    # Expired links found in the list phase
    artifacts_deleted: int = 0          # QR codes removed from the artifact store
    records_deleted: int = 0            # Link records removed from the repository
    skipped: bool = False               # Another sweep held the lock
    artifact_error: bool = False        # Artifact phase failed (records were still deleted)
    record_error: bool = False          # Record phase failed (retried next tick)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
# fmt: on


class ExpirySweeper:
    """Delete expired links on a schedule

    Attributes:
        link_dao (LinkBaseDAO):
            Link repository.
        artifact_store (ArtifactBaseStore | None):
            QR artifact store. None skips the artifact phase.
        lock (redis.lock.Lock | None):
            Non-blocking lock shared by all sweeper instances. None disables
            serialization (single-instance deployments, tests).

    Example:
        >>> sweeper = ExpirySweeper(link_dao, artifact_store, lock=client.lock('app:dev:locks:sweeper', timeout=600))
        >>> sweeper.run_once()
        SweepReport(expired=3, artifacts_deleted=3, records_deleted=3, skipped=False, artifact_error=False, record_error=False)
    """

    def __init__(self, link_dao: LinkBaseDAO, artifact_store: ArtifactBaseStore | None, lock: Any = None):
        self.link_dao = link_dao
        self.artifact_store = artifact_store
        self.lock = lock
        self._stop = threading.Event()

    def stop(self) -> None:
        """Ask the sweeper to stop after the current phase."""
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def run_once(self, now: datetime | None = None) -> SweepReport:
        if self.lock is not None and not self.lock.acquire(blocking=False):
            logger.info('Another sweep is running. Skipping this tick.', extra={'event': SWEEP_SKIPPED})
            return SweepReport(skipped=True)

        try:
            return self._sweep(now or datetime.now(UTC))
        finally:
            if self.lock is not None:
                self._release()

    def run_forever(self, interval_seconds: int = Defaults.SWEEP_INTERVAL) -> None:
        """Sweep every `interval_seconds` until stop() is called."""
        while not self.stopping:
            try:
                self.run_once()
            except (DAOError, redis.exceptions.RedisError):
                logger.exception('Sweep failed. Retrying next tick.', extra={'event': SWEEP_RECORDS_FAILED})
            self._stop.wait(interval_seconds)

        logger.info('Expiry sweeper stopped.', extra={'event': SWEEP_STOPPED})

    def _sweep(self, now: datetime) -> SweepReport:
        expired = self.link_dao.list_expired_before(now)
        report = SweepReport(expired=len(expired))
        if not expired:
            return report

        if self.stopping:
            logger.info('Stop requested before deleting. Ending sweep.', extra={'event': SWEEP_STOPPED, 'expired': len(expired)})
            return report

        # QR write-back runs in the background, so a missing ref doesn't prove there is no object
        short_codes = [record.short_code for record in expired]
        if self.artifact_store is not None:
            try:
                report.artifacts_deleted = self.artifact_store.delete_many(short_codes)
            except ArtifactError as e:
                report.artifact_error = True
                logger.error(
                    'Failed to delete QR codes of expired links.',
                    extra={'event': SWEEP_ARTIFACTS_FAILED, 'count': len(short_codes), 'reason': str(e)},
                )

        try:
            report.records_deleted = self.link_dao.delete_many(short_codes)
        except DAOError as e:
            report.record_error = True
            logger.error(
                'Failed to delete expired links. Retrying next tick.',
                extra={'event': SWEEP_RECORDS_FAILED, 'count': len(expired), 'reason': str(e)},
            )

        logger.info('Expiry sweep finished.', extra={'event': SWEEP_COMPLETED, **report.to_dict()})
        return report

    def _release(self) -> None:
        try:
            self.lock.release()
        except redis.exceptions.LockError:
            # Lock outlived its timeout and was taken over, nothing left to release
            logger.warning('Sweeper lock expired before release.', extra={'event': SWEEP_COMPLETED})
