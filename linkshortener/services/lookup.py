"""Short code lookups for redirects and stats

An expired link behaves as gone on every read, whether or not the sweeper
has removed it yet.
"""

import logging
from datetime import datetime, UTC

from linkshortener.models import LinkRecordModel
from linkshortener.dao.base import LinkBaseDAO
from linkshortener.dao.exceptions import LinkNotFoundError
from linkshortener.exceptions import ExpiredError, NotFoundError
from linkshortener.utils.background import BackgroundTasks


logger = logging.getLogger(__name__)

LINK_EXPIRED = 'LINK_EXPIRED'


class LinkLookup:
    """Resolve short codes to live link records

    Methods:
        resolve(code, now=None) -> LinkRecordModel:
            Look up a link for redirection and count the click in the background.
        stats(code, now=None) -> LinkRecordModel:
            Look up a link without counting a click.

    Both raise NotFoundError for unknown codes and ExpiredError for links past
    their expiry.
    """

    def __init__(self, link_dao: LinkBaseDAO, tasks: BackgroundTasks):
        self.link_dao = link_dao
        self.tasks = tasks

    def resolve(self, code: str, now: datetime | None = None) -> LinkRecordModel:
        record = self._live_record(code, now)
        self.tasks.submit(self.link_dao.increment_clicks, record.short_code, task_name='increment_clicks')
        return record

    def stats(self, code: str, now: datetime | None = None) -> LinkRecordModel:
        return self._live_record(code, now)

    def _live_record(self, code: str, now: datetime | None) -> LinkRecordModel:
        now = now or datetime.now(UTC)
        short_code = code.strip().lower()

        try:
            record = self.link_dao.get(short_code)
        except LinkNotFoundError as e:
            raise NotFoundError() from e

        if record.is_expired(now):
            logger.info('Expired link requested.', extra={'event': LINK_EXPIRED, 'shortcode': short_code})
            raise ExpiredError()
        return record
