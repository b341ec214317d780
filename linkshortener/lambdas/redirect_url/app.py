import logging

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.exceptions import InternalError, InvalidRequestError, LinkShortenerError
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.services.container import build_services
from linkshortener.utils.config import load_config, app_prefix
from linkshortener.utils.helpers import request_header, guarantee_500_response
from linkshortener.utils.responses import json_response, error_response, redirect_response
from linkshortener.lambdas.redirect_url.constants import FUNCTION_NAME, REDIRECTED, REDIRECT_FAILED, DATA_STORE_ERROR


logger = logging.getLogger(__name__)


def wants_json(event: LambdaEvent) -> bool:
    """True if the caller asked for the link as JSON instead of a redirect"""
    query = event.get('queryStringParameters') or {}
    accept = request_header(event, 'Accept') or ''
    requested_with = request_header(event, 'X-Requested-With') or ''
    return query.get('format') == 'json' or 'application/json' in accept.lower() or requested_with.lower() == 'xmlhttprequest'


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle GET /{shortcode} requests

    This Lambda handler follows this procedure to redirect URLs:
    - Step 1: Extract shortcode from request path
    - Step 2: Look up the live link (the click is counted in the background)
    - Step 3: Redirect client to the original URL, or echo it as JSON

    HTTP responses:
        302: Successful redirect (Location: original URL)
        200: JSON echo {original_url, short_code} for API callers
            (Accept: application/json, X-Requested-With: XMLHttpRequest or ?format=json)
        400: Missing shortcode in path
        404: Unknown shortcode
        410: Link expired

    Example:
        >>> event = {'pathParameters': {'shortcode': 'k3x9q2a'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode'], response['headers']['Location']
        (302, 'https://example.com/article/123')
    """
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if not shortcode:
        return error_response(InvalidRequestError("Bad Request (missing 'shortcode' in path)"))

    config = load_config(FUNCTION_NAME)
    services = build_services(config, prefix=app_prefix())

    try:
        record = services.lookup.resolve(shortcode)
    except LinkShortenerError as error:
        logger.info(
            'Short link not redirectable.',
            extra={'event': REDIRECT_FAILED, 'shortcode': shortcode, 'errorCode': error.error_code.value},
        )
        return error_response(error)
    except DataStoreError as error:
        logger.exception('Link data store unavailable.', extra={'event': DATA_STORE_ERROR, 'reason': str(error)})
        return error_response(InternalError())
    finally:
        services.tasks.close()

    logger.info('Redirecting client to original URL.', extra={'event': REDIRECTED, 'shortcode': record.short_code})
    if wants_json(event):
        return json_response(200, {'original_url': record.original_url, 'short_code': record.short_code})
    return redirect_response(record.original_url)
