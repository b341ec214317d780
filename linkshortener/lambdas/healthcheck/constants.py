STATUS_OK = 'ok'
