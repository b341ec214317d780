FUNCTION_NAME = 'redirect_url'

# Log events
REDIRECTED = 'REDIRECTED'
REDIRECT_FAILED = 'REDIRECT_FAILED'
DATA_STORE_ERROR = 'DATA_STORE_ERROR'
