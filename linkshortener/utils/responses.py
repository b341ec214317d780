"""API Gateway (Lambda proxy) response builders

Functions:
    parse_json_body(event) -> Any
        Decode the request body, raising InvalidRequestError on bad JSON.
    json_response(status_code, body, headers=None) -> LambdaResponse
        JSON response with CORS headers.
    error_response(error) -> LambdaResponse
        {'message', 'errorCode'} response for an application error.
    redirect_response(location) -> LambdaResponse
        302 redirect.

Example:
    >>> error_response(RateLimitedError(retry_after=42))
    {'statusCode': 429, 'headers': {..., 'Retry-After': '42'}, 'body': '{"message": "Rate limit exceeded. Try again in 42 seconds.", "errorCode": "RATE_LIMITED"}'}
"""

import json
from typing import Any

from linkshortener.constants import CORS_HEADERS
from linkshortener.exceptions import InvalidRequestError, LinkShortenerError, RateLimitedError
from linkshortener.types import LambdaEvent, LambdaResponse


def parse_json_body(event: LambdaEvent) -> Any:
    try:
        return json.loads(event.get('body') or '{}')
    except json.JSONDecodeError as e:
        raise InvalidRequestError('Bad Request (invalid JSON body)') from e


def json_response(status_code: int, body: Any, headers: dict[str, str] | None = None) -> LambdaResponse:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json', **CORS_HEADERS, **(headers or {})},
        'body': json.dumps(body),
    }


def error_response(error: LinkShortenerError) -> LambdaResponse:
    headers = {}
    if isinstance(error, RateLimitedError):
        headers['Retry-After'] = str(error.retry_after)
    return json_response(
        error.status_code,
        {'message': error.message, 'errorCode': error.error_code.value},
        headers=headers,
    )


def redirect_response(location: str) -> LambdaResponse:
    return {
        'statusCode': 302,
        'headers': {'Location': location, **CORS_HEADERS},
        'body': '',
    }
