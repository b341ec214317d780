"""Utility functions for application configuration management.

This module provides a standardized interface for Lambda functions to
access configuration data stored in **AWS AppConfig**. Each environment
(`APP_ENV`) has a dedicated AppConfig *Environment* within the shared
AppConfig *Application* identified by `APP_NAME`. Configuration data is
stored as a JSON document under a configuration profile (typically
`backend-config`) and deployed to the corresponding environment.

The configuration JSON follows this structure (every section is optional
and merged over DEFAULT_CONFIG):

    {
        "build": 42,
        "redis": {"host": "...", "port": 6379, "db": 0},
        "artifacts": {"bucket": "...", "prefix": "qr/", "public_base_url": "..."},
        "rate_limit": {"max_requests": 20, "window_seconds": 60},
        "links": {"shortcode_length": 7, "shortcode_attempts": 5, "bulk_max_items": 100, "public_base_url": null},
        "sweeper": {"interval_seconds": 120, "lock_timeout_seconds": 600},
        "background": {"max_workers": 4},
        "functions": {
            "shorten_url": {"rate_limit": {"max_requests": 10}}
        }
    }

`functions.<name>` holds per-function overrides applied on top of the shared
sections.

Functions:
    app_env() -> str
        Return the current application environment (`APP_ENV`) value,
        defaulting to `'local'`.

    app_name() -> str | None
        Return the application name (`APP_NAME`), or None if not set.

    app_prefix() -> str | None
        Return application prefix for DAOs, or None if `APP_NAME` is not set.

    fetch_appconfig_document() -> dict
        Fetch the raw AppConfig JSON document (from the local AppConfig agent
        when running under SAM).

    load_config(function_name: str) -> dict
        Return the effective configuration for a given function.

Example:
    Typical usage inside a Lambda handler:

        >>> from linkshortener.utils.config import load_config
        >>> config = load_config('shorten_url')
        >>> print(config['redis']['host'])
        redis-15501.host.docker.internal
"""

import os
import copy
import json
import functools
import logging
import urllib.parse
import urllib.request
from typing import Any
from collections.abc import Callable

import boto3

from linkshortener.constants import ENV, TTL, Defaults
from linkshortener.types import AppConfig, AppConfigDataClient, LambdaConfiguration
from linkshortener.utils.helpers import require_environment
from linkshortener.utils.runtime import running_locally


logger = logging.getLogger(__name__)


DEFAULT_CONFIG: dict[str, dict[str, Any]] = {
    'redis': {
        'host': 'localhost',
        'port': 6379,
        'db': 0,
    },
    'artifacts': {
        'bucket': None,
        'prefix': Defaults.ARTIFACT_PREFIX,
        'public_base_url': None,
    },
    'rate_limit': {
        'max_requests': Defaults.RATE_LIMIT_MAX_REQUESTS,
        'window_seconds': TTL.RATE_LIMIT_WINDOW,
    },
    'links': {
        'shortcode_length': Defaults.SHORTCODE_LENGTH,
        'shortcode_attempts': Defaults.SHORTCODE_ATTEMPTS,
        'public_base_url': None,
        'bulk_max_items': Defaults.BULK_MAX_ITEMS,
    },
    'sweeper': {
        'interval_seconds': Defaults.SWEEP_INTERVAL,
        'lock_timeout_seconds': TTL.SWEEPER_LOCK,
    },
    'background': {
        'max_workers': Defaults.BACKGROUND_WORKERS,
    },
}


def app_env() -> str:
    """Return the current application environment by reading 'APP_ENV'

    Returns:
        str:
            Value of `APP_ENV` environment variable, `'local'` by default.

    Example:
        >>> os.environ['APP_ENV'] = 'dev'
        >>> app_env()
        'dev'
    """
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    """Return the current application name by reading 'APP_NAME'

    Returns:
        str:
            Value of `APP_NAME` environment variable.
            None if variable is not set.
    """
    return os.environ.get(ENV.App.APP_NAME)


def app_prefix() -> str | None:
    """Return application prefix for DAOs

    Returns:
        str: app prefix as <app name>:<app env>.
             None if APP_NAME is not set.

    Example:
        >>> os.environ['APP_NAME'] = 'linkshortener'
        >>> os.environ['APP_ENV'] = 'local'
        >>> app_prefix()
        'linkshortener:local'
    """
    return None if app_name() is None else f'{app_name()}:{app_env()}'


def _sam_load_local_appconfig(func: Callable[[], dict]) -> Callable[[], dict]:  # pragma: no cover
    """Decorator: load AppConfig from a local AppConfig Agent when running under SAM

    Behavior:
        - If the application is running locally and `APPCONFIG_AGENT_URL` is set
          to a safe local URL, fetch the app configuration JSON from the local AppConfig agent.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).

    Environment variables used:
        APPCONFIG_AGENT_URL     – Base URL of the local AppConfig Agent (e.g., http://host.docker.internal:2772).
        APPCONFIG_PROFILE_NAME  – Optional profile name (default: "backend-config").
    """

    # ruff: noqa: E701
    def __validate_appconfig_url(url: str | None) -> str:
        if not url:
            return ''
        components = urllib.parse.urlparse(url)
        if components.scheme not in {'http', 'https'}:
            raise ValueError(f'Bad scheme {url}')
        if components.hostname not in {'localhost', '127.0.0.1', 'host.docker.internal'}:
            raise ValueError(f'Bad host {url}')
        if components.port not in {2772, None}:
            raise ValueError(f'Bad port {url}')
        return url

    # ruff: enable

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> dict:
        agent_url = __validate_appconfig_url(os.getenv(ENV.AppConfig.AGENT_URL))
        if not running_locally() or not agent_url:
            return func(*args, **kwargs)

        profile_name = os.getenv(ENV.AppConfig.PROFILE_NAME, 'backend-config')
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'

        logger.debug('Trying to load AppConfig from local agent.', extra={'agentUrl': url})
        with urllib.request.urlopen(url, timeout=5) as r:  # noqa: S310
            document = json.load(r)

        logger.debug('Loaded AppConfig from local agent.', extra={'build': document.get('build')})
        return document

    return wrapper


@_sam_load_local_appconfig
@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def fetch_appconfig_document() -> AppConfig:
    """Fetch the raw configuration document from AWS AppConfig

    Environment variables required:
        APPCONFIG_APP_ID       – AppConfig Application ID
        APPCONFIG_ENV_ID       – AppConfig Environment ID
        APPCONFIG_PROFILE_ID   – AppConfig Configuration Profile ID

    Returns:
        dict: the deployed configuration document.
    """
    logger.debug('Trying to load AppConfig from AWS AppConfig.')

    appconfig: AppConfigDataClient = boto3.client('appconfigdata')

    # Start an AppConfig data session
    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
        EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
        ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
    )['InitialConfigurationToken']

    # Fetch the configuration
    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    document = json.loads(content.decode('utf-8'))

    logger.debug('Loaded AppConfig from AWS AppConfig.', extra={'build': document.get('build')})
    return document


def merge_config(document: dict, function_name: str) -> dict:
    """Merge a configuration document over DEFAULT_CONFIG for one function

    Precedence (lowest to highest): DEFAULT_CONFIG, shared document sections,
    `functions.<function_name>` overrides.

    Example:
        >>> merge_config({'rate_limit': {'max_requests': 5}}, 'shorten_url')['rate_limit']
        {'max_requests': 5, 'window_seconds': 60}
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    overrides = (document.get('functions') or {}).get(function_name) or {}

    for layer in (document, overrides):
        for section, values in layer.items():
            if section in config and isinstance(values, dict):
                config[section].update(values)
    return config


def load_config(function_name: str) -> LambdaConfiguration:
    """Load the effective configuration for a given function

    Args:
        function_name (str):
            Name of the function (e.g., "shorten_url" or "sweep_expired_links").

    Returns:
        dict: configuration sections (redis, artifacts, rate_limit, links, sweeper, background).

    Example:
        >>> app_config = load_config('shorten_url')
        >>> app_config['rate_limit']['max_requests']
        20
    """
    document = fetch_appconfig_document()
    config = merge_config(document, function_name)
    logger.debug('Resolved configuration.', extra={'functionName': function_name, 'build': document.get('build')})
    return config
