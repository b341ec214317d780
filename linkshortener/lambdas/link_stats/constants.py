FUNCTION_NAME = 'link_stats'

# Log events
STATS_SERVED = 'STATS_SERVED'
STATS_FAILED = 'STATS_FAILED'
DATA_STORE_ERROR = 'DATA_STORE_ERROR'
