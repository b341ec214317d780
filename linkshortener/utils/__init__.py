from linkshortener.utils.config import app_env, app_name, app_prefix, load_config
from linkshortener.utils.helpers import base_url, client_ip, client_timezone, request_header, isoformat_z, add_months, require_environment
from linkshortener.utils.shortener import generate_shortcode, validate_alias_format, is_reserved, check_custom_alias
from linkshortener.utils.expiry import compute_expiry, NEVER_EXPIRES
from linkshortener.utils.logging import initialize_logging


__all__ = [
    'generate_shortcode',
    'validate_alias_format',
    'is_reserved',
    'check_custom_alias',
    'compute_expiry',
    'NEVER_EXPIRES',
    'app_env',
    'app_name',
    'app_prefix',
    'load_config',
    'base_url',
    'client_ip',
    'client_timezone',
    'request_header',
    'isoformat_z',
    'add_months',
    'require_environment',
    'initialize_logging',
]
