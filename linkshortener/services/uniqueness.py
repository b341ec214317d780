"""Short code uniqueness resolution

The existence checks here are advisory: another request may claim the same
code between the check and the insert. LinkBaseDAO.insert() is the final
arbiter and raises LinkAlreadyExistsError when that happens (see
LinkShortener for how the race is handled).
"""

import logging

from linkshortener.constants import Defaults
from linkshortener.dao.base import LinkBaseDAO
from linkshortener.exceptions import AliasTakenError, SlugExhaustedError
from linkshortener.utils.shortener import check_custom_alias, generate_shortcode


logger = logging.getLogger(__name__)

SHORTCODE_COLLISION = 'SHORTCODE_COLLISION'
SHORTCODE_EXHAUSTED = 'SHORTCODE_EXHAUSTED'


class ShortcodeResolver:
    """Pick a short code that no live record holds

    Methods:
        generate() -> str:
            Random code, retried up to `max_attempts` times on collision.
            Raises SlugExhaustedError when every attempt collides.

        claim(alias: str) -> str:
            Validate a custom alias (reserved, then format) and check it's free.
            Raises ReservedAliasError, InvalidAliasFormatError or AliasTakenError.
    """

    def __init__(
        self,
        link_dao: LinkBaseDAO,
        length: int = Defaults.SHORTCODE_LENGTH,
        max_attempts: int = Defaults.SHORTCODE_ATTEMPTS,
    ):
        self.link_dao = link_dao
        self.length = length
        self.max_attempts = max_attempts

    def generate(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            short_code = generate_shortcode(self.length)
            if not self.link_dao.exists(short_code):
                return short_code
            logger.info(
                'Generated short code collides with an existing link.',
                extra={'event': SHORTCODE_COLLISION, 'shortcode': short_code, 'attempt': attempt},
            )

        logger.error(
            'Failed to generate a unique short code.',
            extra={'event': SHORTCODE_EXHAUSTED, 'attempts': self.max_attempts, 'length': self.length},
        )
        raise SlugExhaustedError(f'Failed to generate a unique short code after {self.max_attempts} attempts')

    def claim(self, alias: str) -> str:
        short_code = check_custom_alias(alias)
        if self.link_dao.exists(short_code):
            raise AliasTakenError()
        return short_code
