from enum import StrEnum


class TTL:
    """TTL durations in seconds."""

    # Fixed rate limiting window for link creation requests
    RATE_LIMIT_WINDOW = 60
    # Upper bound for a single sweep run holding the sweeper lock (10 minutes)
    SWEEPER_LOCK = 600


class Defaults:
    """Default tuning values, overridable via AppConfig."""

    SHORTCODE_LENGTH = 7  # Length of randomly generated short codes
    SHORTCODE_ATTEMPTS = 5  # Generate-and-check attempts before giving up
    RATE_LIMIT_MAX_REQUESTS = 20  # Creation requests per client per window
    SWEEP_INTERVAL = 120  # Seconds between expiry sweeps (every 2 minutes)
    BULK_MAX_ITEMS = 100  # Max items accepted by a single bulk-shorten request
    BACKGROUND_WORKERS = 4  # Threads serving fire-and-forget side effects
    ARTIFACT_PREFIX = 'qr/'  # S3 key prefix for rendered QR codes
    TIMEZONE = 'UTC'  # Timezone for absolute expiries when none is supplied


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        AWS_SAM_LOCAL = 'AWS_SAM_LOCAL'
        LOG_LEVEL = 'LOG_LEVEL'

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'
        AGENT_URL = 'APPCONFIG_AGENT_URL'
        PROFILE_NAME = 'APPCONFIG_PROFILE_NAME'


# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'

# Permissive CORS headers for the browser frontend
CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type,Accept,X-Requested-With,X-Timezone,Timezone',
    'Access-Control-Allow-Methods': 'OPTIONS,POST,GET',
}
