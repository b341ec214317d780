import logging

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.exceptions import InternalError, InvalidRequestError, LinkShortenerError
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.services.container import build_services
from linkshortener.utils.config import load_config, app_prefix
from linkshortener.utils.helpers import guarantee_500_response
from linkshortener.utils.responses import json_response, error_response
from linkshortener.lambdas.link_stats.constants import FUNCTION_NAME, STATS_SERVED, STATS_FAILED, DATA_STORE_ERROR


logger = logging.getLogger(__name__)


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle GET /stats/{shortcode} requests

    HTTP responses:
        200: {stats: {id, original_url, short_code, expires_at, clicks, qr_artifact_ref, created_at}}
        400: Missing shortcode in path
        404: Unknown shortcode
        410: Link expired
    """
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if not shortcode:
        return error_response(InvalidRequestError("Bad Request (missing 'shortcode' in path)"))

    config = load_config(FUNCTION_NAME)
    services = build_services(config, prefix=app_prefix())

    try:
        record = services.lookup.stats(shortcode)
    except LinkShortenerError as error:
        logger.info('No stats for short link.', extra={'event': STATS_FAILED, 'shortcode': shortcode, 'errorCode': error.error_code.value})
        return error_response(error)
    except DataStoreError as error:
        logger.exception('Link data store unavailable.', extra={'event': DATA_STORE_ERROR, 'reason': str(error)})
        return error_response(InternalError())
    finally:
        services.tasks.close()

    logger.info('Served link stats.', extra={'event': STATS_SERVED, 'shortcode': record.short_code, 'clicks': record.clicks})
    return json_response(200, {'stats': record.to_dict()})
