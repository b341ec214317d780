from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.utils.helpers import guarantee_500_response
from linkshortener.utils.responses import json_response
from linkshortener.lambdas.healthcheck.constants import STATUS_OK


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle GET /health requests (liveness only, no dependency checks)"""
    return json_response(200, {'status': STATUS_OK})
