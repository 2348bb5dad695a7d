"""
Visibility Permissions - DRF seam for the visibility policies

Views opt in with ``permission_classes = [VisibilityPermission]`` and the
default ``VisibilityFilterBackend``. A view that serves world-readable
records to anonymous callers sets ``allow_anonymous_visibility = True``.
"""

from rest_framework.filters import BaseFilterBackend
from rest_framework.permissions import BasePermission

from .context import database_context
from .policies import can_view
from .scopes import PolicyScope
from .viewer import Viewer


def get_request_context(request):
    """One ``VisibilityContext`` per request, shared by permission and filter."""
    context = getattr(request, '_visibility_context', None)
    if context is None:
        context = database_context()
        request._visibility_context = context
    return context


def get_request_viewer(request):
    viewer = getattr(request, '_visibility_viewer', None)
    if viewer is None:
        viewer = Viewer.from_request(request)
        request._visibility_viewer = viewer
    return viewer


class VisibilityPermission(BasePermission):
    """Allow object access only when the visibility policy allows it."""

    message = 'You do not have permission to view this record.'

    def has_permission(self, request, view):
        if getattr(view, 'allow_anonymous_visibility', False):
            return True
        user = getattr(request, 'user', None)
        return bool(user and user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        return can_view(get_request_viewer(request), obj, get_request_context(request))


class VisibilityFilterBackend(BaseFilterBackend):
    """Restrict list querysets to the records the viewer may see."""

    def filter_queryset(self, request, queryset, view):
        if not hasattr(queryset.model, 'visibility_resource_type'):
            return queryset
        return PolicyScope(get_request_viewer(request), get_request_context(request)).resolve(queryset)
