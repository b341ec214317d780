"""Helper utilities for AWS lambda functions.

Functions:
    base_url() -> str
        Extract correct public base URL from API Gateway event
    client_ip() -> str
        Extract the originating client address from API Gateway event
    request_header() -> str | None
        Case-insensitive header lookup on API Gateway event
    client_timezone() -> str | None
        Timezone the client asked for via the X-Timezone (or Timezone) header
    isoformat_z() -> str | None
        Render an aware datetime as an ISO-8601 UTC string with a 'Z' suffix
    add_months() -> datetime
        Calendar-aware month arithmetic (clamps to the last day of month)
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present
    guarantee_500_response(handler) -> Callable
        Decorator: Turn uncaught handler errors into a 500 response

Example:
    Typical usage inside a Lambda handler:

        >>> from linkshortener.utils.helpers import base_url
        >>> event = {
        ...     "requestContext": {
        ...         "domainName": "abc123.execute-api.us-east-1.amazonaws.com",
        ...         "stage": "Prod"
        ...     }
        ... }
        >>> base_url(event)
        'https://abc123.execute-api.us-east-1.amazonaws.com/Prod'

        >>> base_url({})
        'http://localhost:3000'
"""

import os
import json
import calendar
import logging
import functools
from datetime import datetime, UTC
from typing import Any
from collections.abc import Callable

from linkshortener.constants import CORS_HEADERS, UNKNOWN_INTERNAL_SERVER_ERROR
from linkshortener.utils.runtime import running_locally


logger = logging.getLogger(__name__)


def base_url(event: dict[str, Any]) -> str:
    """Extract public base URL from API Gateway event

    Works seamlessly with both custom and default AWS API Gateway domains.
    If a custom domain is configured, the stage name is omitted.
    If using the default AWS execute-api domain, the stage name is included.

    Args:
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        str: Base URL, e.g.:
             - "https://sho.rt"
             - "https://abc123.execute-api.us-east-1.amazonaws.com/Prod"
    """
    request_context = event.get('requestContext', {})
    domain = request_context.get('domainName', '')
    stage = request_context.get('stage', '')

    if domain.startswith(('localhost', '127.0.0.1')):
        # SAM local API (no TLS)
        return f'http://{domain}'
    elif domain and 'execute-api' not in domain:
        # If the domain is a custom domain (no execute-api), skip stage
        return f'https://{domain}'
    elif domain:
        # Otherwise include the stage (for AWS default domains)
        return f'https://{domain}/{stage}'
    else:
        # Fallback: local invocation (SAM CLI, tests, etc.)
        return 'http://localhost:3000'


def request_header(event: dict[str, Any], name: str) -> str | None:
    """Return a request header value regardless of the header name's casing."""
    headers = event.get('headers') or {}
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def client_timezone(event: dict[str, Any]) -> str | None:
    """Return the X-Timezone header, falling back to a plain Timezone header."""
    return request_header(event, 'X-Timezone') or request_header(event, 'Timezone')


def client_ip(event: dict[str, Any]) -> str:
    """Extract the originating client address from API Gateway event

    Looks at the REST API (v1) identity, the HTTP API (v2) context and finally
    the first hop of X-Forwarded-For.

    Args:
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        str: client address, 'unknown' if none can be found.
    """
    request_context = event.get('requestContext') or {}
    source_ip = (request_context.get('identity') or {}).get('sourceIp') or (request_context.get('http') or {}).get('sourceIp')
    if source_ip:
        return source_ip

    forwarded_for = request_header(event, 'X-Forwarded-For')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return 'unknown'


def isoformat_z(value: datetime | None) -> str | None:
    """Render an aware datetime in UTC as e.g. '2025-10-15T12:00:00Z'."""
    if value is None:
        return None
    return value.astimezone(UTC).isoformat(timespec='seconds').replace('+00:00', 'Z')


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months to a datetime.

    The day of month is clamped to the last valid day of the target month,
    e.g. Jan 31 + 1 month lands on Feb 28 (or Feb 29 in leap years).

    Example:
        >>> add_months(datetime(2025, 1, 31, tzinfo=UTC), 1)
        datetime.datetime(2025, 2, 28, 0, 0, tzinfo=datetime.timezone.utc)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Args:
        *names (str):
            Names of required environment variables.

    Raises:
        KeyError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID')
        ... def my_function():
        ...     pass
        >>> my_function()
        KeyError: "Missing required environment variables: 'APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID'"
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                missing_list = ', '.join(f"'{name}'" for name in missing)
                raise KeyError(f'Missing required environment variables: {missing_list}')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def guarantee_500_response(handler: Callable) -> Callable:
    """Decorator: respond with 500 instead of crashing on uncaught handler errors

    When running locally the original exception is re-raised so that
    `sam local` shows the traceback.

    Example:
        >>> @guarantee_500_response
        ... def lambda_handler(event, context):
        ...     raise RuntimeError('boom')
        >>> lambda_handler({}, None)['statusCode']
        500
    """

    @functools.wraps(handler)
    def wrapper(event: dict[str, Any], context: Any) -> dict[str, Any]:
        try:
            return handler(event, context)
        except Exception:
            if running_locally():
                raise
            logger.exception(
                'Unhandled error in lambda handler. Responding with 500.',
                extra={'event': UNKNOWN_INTERNAL_SERVER_ERROR, 'handler': handler.__module__},
            )
            return {
                'statusCode': 500,
                'headers': {'Content-Type': 'application/json', **CORS_HEADERS},
                'body': json.dumps(
                    {
                        'message': 'Internal Server Error',
                        'errorCode': UNKNOWN_INTERNAL_SERVER_ERROR,
                    }
                ),
            }

    return wrapper
