"""Short code generation and custom alias validation

Functions:
    generate_shortcode(length=7) -> str:
        Draw a random short code from a lower-case, URL-safe alphabet.
    validate_alias_format(alias) -> bool:
        Check a custom alias against ^[A-Za-z0-9_-]{3,30}$.
    is_reserved(alias) -> bool:
        Check whether a custom alias would shadow one of the service's routes.
    check_custom_alias(alias) -> str:
        Run the reserved and format checks in order and normalize the alias.

Example:
    >>> from linkshortener.utils import generate_shortcode, check_custom_alias
    >>> len(generate_shortcode())
    7
    >>> check_custom_alias('My-Blog')
    'my-blog'
    >>> check_custom_alias('Stats')
    Traceback (most recent call last):
        ...
    linkshortener.exceptions.ReservedAliasError: This custom alias is reserved and cannot be used
"""

import re
import secrets
import string

from linkshortener.constants import Defaults
from linkshortener.exceptions import InvalidAliasFormatError, ReservedAliasError


# Codes are case-normalized, so the alphabet is lower-case only:
# 26 lowercase + 10 digits = 36 symbols, 36^7 ~ 7.8e10 codes at the default length.
ALPHABET = string.ascii_lowercase + string.digits

ALIAS_PATTERN = re.compile(r'^[A-Za-z0-9_-]{3,30}$')

RESERVED_ALIASES = frozenset(
    {
        'admin',
        'login',
        'signup',
        'stats',
        'api',
        'shorten',
        'bulk-shorten',
        'health',
        'auth',
        'logout',
    }
)


def generate_shortcode(length: int = Defaults.SHORTCODE_LENGTH) -> str:
    """Generate a uniformly random short code.

    Collisions are possible and handled by the caller (see ShortcodeResolver).

    Args:
        length (int, optional):
            Number of characters. Defaults to 7.

    Returns:
        str: random code drawn from ALPHABET.

    Raises:
        ValueError: if length is not a positive integer.
    """
    if not isinstance(length, int) or isinstance(length, bool) or length < 1:
        raise ValueError(f'Short code length must be a positive integer (given value: {length!r}).')
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))


def validate_alias_format(alias: str) -> bool:
    return isinstance(alias, str) and ALIAS_PATTERN.fullmatch(alias) is not None


def is_reserved(alias: str) -> bool:
    return alias.lower() in RESERVED_ALIASES


def check_custom_alias(alias: str) -> str:
    """Validate a custom alias and return its normalized (lower-cased) form.

    The reserved check runs before the format check so callers always get the
    same error for the same input.

    Raises:
        ReservedAliasError: alias shadows a service route.
        InvalidAliasFormatError: alias doesn't match ^[A-Za-z0-9_-]{3,30}$.
    """
    if is_reserved(alias):
        raise ReservedAliasError()
    if not validate_alias_format(alias):
        raise InvalidAliasFormatError()
    return alias.lower()
