import logging

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.models import ShortenRequest
from linkshortener.exceptions import InternalError, LinkShortenerError
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.services.container import build_services
from linkshortener.utils.config import load_config, app_prefix
from linkshortener.utils.helpers import base_url, client_ip, client_timezone, guarantee_500_response
from linkshortener.utils.responses import parse_json_body, json_response, error_response
from linkshortener.lambdas.shorten_url.constants import FUNCTION_NAME, LINK_SHORTENED, LINK_REJECTED, DATA_STORE_ERROR


logger = logging.getLogger(__name__)


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle POST /shorten requests

    This Lambda handler follows this procedure to shorten URLs:
    - Step 1: Admit the request through the per-client rate limiter
    - Step 2: Parse the request body (timezone falls back to the X-Timezone header)
    - Step 3: Create the link (URL, expiry, short code, QR code)
    - Step 4: Respond with 201 and the short URL

    HTTP responses:
        201: Link created
            short_url: newly created short url
            qr_artifact_ref: public URL of the QR code (absent if it couldn't be created)
            expires_at_utc: expiry instant (absent for links that never expire)
        400: Invalid JSON body, URL, expiry or custom alias format
        403: Reserved custom alias
        409: Custom alias already in use
        429: Rate limit exceeded (Retry-After header set)
        500: Data store unavailable or short code space exhausted

    Example:
        >>> event = {'body': '{"original_url": "example.com", "relative_expiry": {"count": 2, "unit": "days"}}'}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        201
    """
    config = load_config(FUNCTION_NAME)
    services = build_services(config, prefix=app_prefix())
    client = client_ip(event)

    try:
        services.admission.admit(client)
        payload = parse_json_body(event)
        request = ShortenRequest.from_payload(payload, default_timezone=client_timezone(event))
        shortener = services.shortener(config['links']['public_base_url'] or base_url(event))
        result = shortener.shorten(request)
    except LinkShortenerError as error:
        logger.info(
            'Rejected link creation request.',
            extra={'event': LINK_REJECTED, 'client': client, 'errorCode': error.error_code.value, 'reason': error.message},
        )
        return error_response(error)
    except DataStoreError as error:
        logger.exception('Link data store unavailable.', extra={'event': DATA_STORE_ERROR, 'reason': str(error)})
        return error_response(InternalError())
    finally:
        services.tasks.close()

    logger.info(
        'Successfully shortened %s.',
        request.original_url,
        extra={'event': LINK_SHORTENED, 'client': client, 'shortcode': result.short_code},
    )
    return json_response(201, result.to_dict())
