FUNCTION_NAME = 'shorten_url'

# Log events
LINK_SHORTENED = 'LINK_SHORTENED'
LINK_REJECTED = 'LINK_REJECTED'
DATA_STORE_ERROR = 'DATA_STORE_ERROR'
