import logging

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.exceptions import InternalError, InvalidRequestError, LinkShortenerError
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.services.container import build_services
from linkshortener.utils.config import load_config, app_prefix
from linkshortener.utils.helpers import base_url, client_ip, client_timezone, guarantee_500_response
from linkshortener.utils.responses import parse_json_body, json_response, error_response
from linkshortener.lambdas.bulk_shorten_url.constants import FUNCTION_NAME, BULK_SHORTENED, BULK_REJECTED, DATA_STORE_ERROR


logger = logging.getLogger(__name__)


def extract_urls(payload: object, max_items: int) -> list:
    if not isinstance(payload, dict) or not isinstance(payload.get('urls'), list):
        raise InvalidRequestError("Bad Request ('urls' must be an array)")

    urls = payload['urls']
    if len(urls) > max_items:
        raise InvalidRequestError(f'Bad Request (at most {max_items} urls per request)')
    return urls


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle POST /bulk-shorten requests

    Every item of `urls` is shortened independently: one item's failure never
    affects the others and never fails the whole request.

    HTTP responses:
        207: Multi-status
            results: per item, in request order, either
                {success: true, short_url, qr_artifact_ref?, expires_at_utc?}
                {success: false, error, error_code, error_kind}
        400: Invalid JSON body, `urls` missing or not an array, too many items
        429: Rate limit exceeded (Retry-After header set)

    Example:
        >>> event = {'body': '{"urls": [{"original_url": "example.com"}, {"original_url": "not a url"}]}'}
        >>> json.loads(lambda_handler(event, None)['body'])['results'][1]['error_code']
        400
    """
    config = load_config(FUNCTION_NAME)
    services = build_services(config, prefix=app_prefix())
    client = client_ip(event)

    try:
        services.admission.admit(client)
        urls = extract_urls(parse_json_body(event), max_items=int(config['links']['bulk_max_items']))
        shortener = services.shortener(config['links']['public_base_url'] or base_url(event))
        results = shortener.shorten_many(urls, default_timezone=client_timezone(event))
    except LinkShortenerError as error:
        logger.info(
            'Rejected bulk link creation request.',
            extra={'event': BULK_REJECTED, 'client': client, 'errorCode': error.error_code.value, 'reason': error.message},
        )
        return error_response(error)
    except DataStoreError as error:
        logger.exception('Link data store unavailable.', extra={'event': DATA_STORE_ERROR, 'reason': str(error)})
        return error_response(InternalError())
    finally:
        services.tasks.close()

    succeeded = sum(1 for result in results if result['success'])
    logger.info(
        'Bulk shortened %s of %s urls.',
        succeeded,
        len(results),
        extra={'event': BULK_SHORTENED, 'client': client, 'succeeded': succeeded, 'failed': len(results) - succeeded},
    )
    return json_response(207, {'results': results})
