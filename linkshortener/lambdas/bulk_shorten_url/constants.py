FUNCTION_NAME = 'bulk_shorten_url'

# Log events
BULK_SHORTENED = 'BULK_SHORTENED'
BULK_REJECTED = 'BULK_REJECTED'
DATA_STORE_ERROR = 'DATA_STORE_ERROR'
