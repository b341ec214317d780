from linkshortener.models.link_record_model import LinkRecordModel
from linkshortener.models.shorten_request_model import ShortenRequest, RelativeExpiry, ShortenResult


__all__ = [
    'LinkRecordModel',
    'ShortenRequest',
    'RelativeExpiry',
    'ShortenResult',
]
