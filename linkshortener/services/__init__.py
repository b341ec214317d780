from linkshortener.services.uniqueness import ShortcodeResolver
from linkshortener.services.admission import AdmissionController
from linkshortener.services.lookup import LinkLookup
from linkshortener.services.shortening import LinkShortener
from linkshortener.services.sweeper import ExpirySweeper, SweepReport


__all__ = [
    'ShortcodeResolver',
    'AdmissionController',
    'LinkLookup',
    'LinkShortener',
    'ExpirySweeper',
    'SweepReport',
]
