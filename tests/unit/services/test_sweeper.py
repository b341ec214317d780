from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock

import pytest
import redis

from linkshortener.models import LinkRecordModel
from linkshortener.dao.base import LinkBaseDAO, ArtifactBaseStore
from linkshortener.dao.exceptions import ArtifactStoreError, DataStoreError
from linkshortener.services.sweeper import ExpirySweeper, SweepReport


NOW = datetime(2025, 10, 20, 0, 0, 0, tzinfo=UTC)


def record(short_code: str, expires_at: datetime, qr: bool = True) -> LinkRecordModel:
    return LinkRecordModel(
        original_url=f'https://example.com/{short_code}',
        short_code=short_code,
        expires_at=expires_at,
        qr_artifact_ref=f'https://cdn.test/qr/{short_code}.png' if qr else None,
    )


class TestExpirySweeper:
    link_dao: MagicMock
    artifact_store: MagicMock
    lock: MagicMock
    sweeper: ExpirySweeper

    @pytest.fixture(autouse=True)
    def setup(self, link_dao: LinkBaseDAO, artifact_store: ArtifactBaseStore):
        # Three links expired before NOW. A fourth one expiring later is never listed.
        link_dao.list_expired_before.return_value = [
            record('gone001', NOW - timedelta(days=2)),
            record('gone002', NOW - timedelta(hours=1)),
            record('gone003', NOW - timedelta(seconds=1), qr=False),
        ]
        link_dao.delete_many.side_effect = lambda short_codes: len(short_codes)

        self.lock = MagicMock()
        self.lock.acquire.return_value = True

        self.link_dao = link_dao
        self.artifact_store = artifact_store
        self.sweeper = ExpirySweeper(link_dao, artifact_store, lock=self.lock)

    def test_run_once(self):
        report = self.sweeper.run_once(now=NOW)

        assert report == SweepReport(expired=3, artifacts_deleted=3, records_deleted=3)
        self.link_dao.list_expired_before.assert_called_once_with(NOW)
        # QR codes are removed even when the ref hasn't been written back yet
        self.artifact_store.delete_many.assert_called_once_with(['gone001', 'gone002', 'gone003'])
        self.link_dao.delete_many.assert_called_once_with(['gone001', 'gone002', 'gone003'])
        self.lock.acquire.assert_called_once_with(blocking=False)
        self.lock.release.assert_called_once()

    def test_run_once_with_nothing_expired(self):
        self.link_dao.list_expired_before.return_value = []

        assert self.sweeper.run_once(now=NOW) == SweepReport()
        self.artifact_store.delete_many.assert_not_called()
        self.link_dao.delete_many.assert_not_called()
        self.lock.release.assert_called_once()

    def test_run_once_deletes_records_when_artifact_phase_fails(self):
        self.artifact_store.delete_many.side_effect = ArtifactStoreError('access denied')

        report = self.sweeper.run_once(now=NOW)

        assert report.artifact_error is True
        assert report.artifacts_deleted == 0
        assert report.records_deleted == 3
        assert report.record_error is False

    def test_run_once_reports_record_phase_failure(self):
        self.link_dao.delete_many.side_effect = DataStoreError('down')

        report = self.sweeper.run_once(now=NOW)

        assert report.artifacts_deleted == 3
        assert report.record_error is True
        self.lock.release.assert_called_once()

    def test_run_once_without_artifact_store(self):
        sweeper = ExpirySweeper(self.link_dao, None, lock=self.lock)

        report = sweeper.run_once(now=NOW)

        assert report == SweepReport(expired=3, artifacts_deleted=0, records_deleted=3)

    def test_run_once_skips_when_lock_is_held(self):
        self.lock.acquire.return_value = False

        assert self.sweeper.run_once(now=NOW) == SweepReport(skipped=True)
        self.link_dao.list_expired_before.assert_not_called()
        self.lock.release.assert_not_called()

    def test_run_once_tolerates_expired_lock(self):
        self.lock.release.side_effect = redis.exceptions.LockError('Cannot release a lock that is no longer owned')

        assert self.sweeper.run_once(now=NOW).records_deleted == 3

    def test_run_once_releases_lock_when_listing_fails(self):
        self.link_dao.list_expired_before.side_effect = DataStoreError('down')

        with pytest.raises(DataStoreError):
            self.sweeper.run_once(now=NOW)
        self.lock.release.assert_called_once()

    def test_stop_before_deleting(self):
        self.sweeper.stop()

        report = self.sweeper.run_once(now=NOW)

        assert report == SweepReport(expired=3)
        self.artifact_store.delete_many.assert_not_called()
        self.link_dao.delete_many.assert_not_called()

    def test_stop_during_artifact_phase_still_deletes_records(self):
        def delete_artifacts(short_codes):
            self.sweeper.stop()
            return len(short_codes)

        self.artifact_store.delete_many.side_effect = delete_artifacts

        report = self.sweeper.run_once(now=NOW)

        assert self.sweeper.stopping is True
        assert report.records_deleted == 3

    def test_run_forever_until_stopped(self):
        ticks = []

        def list_expired(now):
            ticks.append(now)
            if len(ticks) == 1:
                raise DataStoreError('down')
            self.sweeper.stop()
            return []

        self.link_dao.list_expired_before.side_effect = list_expired

        self.sweeper.run_forever(interval_seconds=0)

        assert len(ticks) == 2
        assert self.sweeper.stopping is True
