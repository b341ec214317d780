"""Expiry sweeper entry points

`lambda_handler` runs a single sweep per EventBridge schedule tick (every two
minutes by default). `main` runs the sweeper as a long-lived process
(`linkshortener-sweeper` console script), ticking every
`sweeper.interval_seconds` until SIGTERM or SIGINT.
"""

import argparse
import json
import logging
import signal

import redis

from linkshortener.types import LambdaEvent, LambdaContext
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.services.container import build_services
from linkshortener.services.sweeper import SweepReport
from linkshortener.utils.config import load_config, app_prefix
from linkshortener.utils.logging import initialize_logging
from linkshortener.lambdas.sweep_expired_links.constants import FUNCTION_NAME, SUCCESS, SKIPPED, ERROR, SWEEPER_STARTED, SWEEPER_SIGNAL


logger = logging.getLogger(__name__)


def response_success(*, report: SweepReport) -> str:
    return json.dumps({'status': SKIPPED if report.skipped else SUCCESS, **report.to_dict()})


def response_error(*, error: Exception) -> str:
    return json.dumps(
        {
            'status': ERROR,
            'message': 'Failed to sweep expired links',
            'reason': str(error),
            'error': error.__class__.__name__,
        }
    )


def lambda_handler(event: LambdaEvent, context: LambdaContext) -> str:
    """Delete expired links and their QR codes.

    Diagnostic responses (NOT valid HTTP responses):
        `success` / `skipped`:
            status: success | skipped
            expired, artifacts_deleted, records_deleted: counts
            skipped, artifact_error, record_error: flags
        `error`:
            status: error
            message: Failed to sweep expired links
            reason: <reason>
            error: <error class name> (e.g. DataStoreError)
    """
    try:
        services = build_services(load_config(FUNCTION_NAME), prefix=app_prefix())
        report = services.sweeper.run_once()
    except (DataStoreError, redis.exceptions.RedisError) as error:
        logger.exception(
            'Failed to sweep expired links.',
            extra={'event': ERROR, 'reason': str(error), 'error': error.__class__.__name__},
        )
        return response_error(error=error)

    return response_success(report=report)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog='linkshortener-sweeper', description='Delete expired short links and their QR codes.')
    parser.add_argument('--once', action='store_true', help='run a single sweep and exit')
    parser.add_argument('--interval', type=int, default=None, help='seconds between sweeps (default: from AppConfig)')
    args = parser.parse_args(argv)

    initialize_logging()
    config = load_config(FUNCTION_NAME)
    services = build_services(config, prefix=app_prefix())
    sweeper = services.sweeper

    if args.once:
        report = sweeper.run_once()
        print(response_success(report=report))
        return 1 if report.record_error else 0

    def handle_signal(signum: int, frame: object) -> None:
        logger.info('Received %s. Stopping after the current phase.', signal.Signals(signum).name, extra={'event': SWEEPER_SIGNAL})
        sweeper.stop()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    interval = args.interval or int(config['sweeper']['interval_seconds'])
    logger.info('Expiry sweeper started.', extra={'event': SWEEPER_STARTED, 'interval_seconds': interval})
    sweeper.run_forever(interval_seconds=interval)
    return 0


if __name__ == '__main__':  # pragma: no cover
    raise SystemExit(main())
