from rest_framework.permissions import BasePermission


class IsAdminUser(BasePermission):
    """Allows access only to accounts flagged ``is_admin``."""
    message = 'Admin access required.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_admin)
