from rest_framework import permissions

from .models import User, role_value
import logging

logger = logging.getLogger(__name__)


class IsPrivilegedRole(permissions.BasePermission):
    """Admins, managers and owners only."""

    message = "Only admins, managers and owners can perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_privileged)


class HasOrderRole(permissions.BasePermission):
    """
    Allow only the roles listed on the view for the current action.

    Views declare ``action_roles = {"create": [User.Role.CUSTOMER], ...}``;
    actions without an entry are open to every authenticated user.
    """

    message = "Your role is not allowed to perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False

        allowed = getattr(view, "action_roles", {}).get(getattr(view, "action", None))
        if allowed is None:
            return True

        allowed_values = {role_value(role) for role in allowed}
        if role_value(user.role) in allowed_values:
            return True

        logger.warning(
            "Role check denied request: user=%s role=%s action=%s",
            user.pk,
            user.role,
            view.action,
        )
        return False
