from linkshortener.dao.base.link_base_dao import LinkBaseDAO
from linkshortener.dao.base.rate_limit_base_dao import RateLimitBaseDAO
from linkshortener.dao.base.artifact_base_store import ArtifactBaseStore


__all__ = [
    'LinkBaseDAO',
    'RateLimitBaseDAO',
    'ArtifactBaseStore',
]
