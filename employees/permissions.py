from rest_framework.permissions import BasePermission


class IsEmployee(BasePermission):
    """Allows access only to accounts with an active employee profile."""
    message = 'Employee access required.'

    def has_permission(self, request, view):
        profile = getattr(request.user, 'employee_profile', None)
        return bool(request.user and request.user.is_authenticated and profile and profile.is_active)
