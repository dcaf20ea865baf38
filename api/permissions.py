from rest_framework.permissions import BasePermission

from nepark.policy import is_admin


class IsAdmin(BasePermission):
    message = 'Admin access required'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and is_admin(request.user))
