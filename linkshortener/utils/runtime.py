"""Runtime utilities

Functions:
    running_locally() -> bool:
        True if lambda is running in local SAM, False otherwise.

Example:
    >>> from linkshortener.utils.runtime import running_locally
    >>> os.environ['APP_ENV'] = 'local'
    >>> running_locally()
    True
    >>> os.environ['APP_ENV'] = 'dev'
    >>> running_locally()
    False
"""

import os

from linkshortener.constants import ENV


def running_locally() -> bool:
    """Return True if running in SAM local invoke/api, False otherwise."""
    env = os.getenv(ENV.App.APP_ENV, '').lower()
    return env == 'local' or os.getenv(ENV.App.AWS_SAM_LOCAL) == 'true'
