FUNCTION_NAME = 'sweep_expired_links'

# Diagnostic response statuses
SUCCESS = 'success'
SKIPPED = 'skipped'
ERROR = 'error'

# Log events
SWEEPER_STARTED = 'SWEEPER_STARTED'
SWEEPER_SIGNAL = 'SWEEPER_SIGNAL'
