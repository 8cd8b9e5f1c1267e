# voting_app/authentication/rbac.py

from enum import Enum
from functools import wraps

from flask import abort, g

# Role-Based Access Control over the session user loaded into `g.current_user`


class UserRole(Enum):
    VOTER = "voter"
    ADMIN = "admin"


class Permission(Enum):
    VOTE = "vote"
    VIEW_OWN_STATUS = "view_own_status"
    VIEW_ANY_STATUS = "view_any_status"
    REGISTER_VOTERS = "register_voters"
    MANAGE_CANDIDATES = "manage_candidates"
    MANAGE_VACANCIES = "manage_vacancies"
    MANAGE_ELECTIONS = "manage_elections"
    VIEW_AUDIT_LOGS = "view_audit_logs"


# Role -> Permissions mapping
ROLE_PERMISSIONS = {
    UserRole.VOTER: [
        Permission.VOTE,
        Permission.VIEW_OWN_STATUS,
    ],
    UserRole.ADMIN: [
        Permission.VOTE,
        Permission.VIEW_OWN_STATUS,
        Permission.VIEW_ANY_STATUS,
        Permission.REGISTER_VOTERS,
        Permission.MANAGE_CANDIDATES,
        Permission.MANAGE_VACANCIES,
        Permission.MANAGE_ELECTIONS,
        Permission.VIEW_AUDIT_LOGS,
    ],
}


class RBACService:
    def has_permission(self, user_role, permission):
        try:
            if isinstance(user_role, str):
                user_role = UserRole(user_role.lower().strip())
            if isinstance(permission, str):
                permission = Permission(permission)
        except ValueError:
            return False
        return permission in ROLE_PERMISSIONS.get(user_role, [])


rbac_service = RBACService()


def current_user():
    return g.get('current_user')


def login_required(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        if current_user() is None:
            abort(401, description='Unauthorized')
        return func(*args, **kwargs)
    return wrapper


def require_permission(permission):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            user = current_user()
            if user is None:
                abort(401, description='Unauthorized')
            if not rbac_service.has_permission(user.get('role'), permission):
                abort(403, description='Forbidden')
            return func(*args, **kwargs)
        return wrapper
    return decorator
