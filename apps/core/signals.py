"""
Organization signal handlers - keep the cached tree snapshot coherent
"""

import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .hierarchy_cache import HierarchyCache
from .models import Organization

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Organization)
@receiver(post_delete, sender=Organization)
def invalidate_org_tree(sender, instance, **kwargs):
    logger.debug("Organization %s changed; dropping cached tree", instance.pk)
    HierarchyCache.invalidate()
