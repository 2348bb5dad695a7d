"""
Hierarchy Cache - Django cache layer for the organization tree snapshot
"""

from django.core.cache import cache
from django.conf import settings


class HierarchyCache:
    """
    Caches the organization node snapshot so that visibility checks do not
    reload the tree on every request. Invalidated by Organization signals.
    """

    CACHE_PREFIX = 'orgtree:'
    VERSION = 'v1'

    @classmethod
    def _ttl(cls):
        return getattr(settings, 'VISIBILITY_HIERARCHY_CACHE_TTL', 300)

    @classmethod
    def _make_key(cls, *parts):
        """Generate cache key"""
        key = ':'.join(str(p) for p in parts)
        return f"{cls.CACHE_PREFIX}{cls.VERSION}:{key}"

    @classmethod
    def get_org_nodes(cls):
        """Cached list of OrgNode, or None on a miss"""
        return cache.get(cls._make_key('nodes'))

    @classmethod
    def set_org_nodes(cls, nodes):
        cache.set(cls._make_key('nodes'), list(nodes), cls._ttl())

    @classmethod
    def invalidate(cls):
        cache.delete(cls._make_key('nodes'))
