# lending/permissions.py
from rest_framework import permissions

from .models import User

# Every protected operation and the one role allowed to call it
OPERATION_ROLES = {
    # lender
    "create_offer": User.LENDER,
    "list_own_offers": User.LENDER,
    "list_lender_applications": User.LENDER,
    "set_application_status": User.LENDER,
    # borrower
    "list_active_offers": User.BORROWER,
    "create_application": User.BORROWER,
    "list_own_applications": User.BORROWER,
    "list_own_payments": User.BORROWER,
    "record_payment": User.BORROWER,
    "borrower_credit_score": User.BORROWER,
    # admin
    "list_users": User.ADMIN,
    "get_user": User.ADMIN,
    "delete_user": User.ADMIN,
    "set_user_role": User.ADMIN,
    "list_borrowers": User.ADMIN,
    "list_all_applications": User.ADMIN,
    "list_all_offers": User.ADMIN,
    "list_all_payments": User.ADMIN,
}


def required_role(operation):
    return OPERATION_ROLES[operation]


class RolePolicy(permissions.BasePermission):
    """
    Single gate for every view. A view names its operations per HTTP method
    in ``operations``; the caller must be authenticated and hold the role
    mapped to that operation in OPERATION_ROLES.
    """

    message = "Forbidden"

    def has_permission(self, request, view):
        user = request.user
        if user is None or not getattr(user, "is_authenticated", False):
            return False

        operation = getattr(view, "operations", {}).get(request.method.lower())
        if operation is None:
            # Unmapped methods fall through to DRF's 405
            return True
        return user.role == required_role(operation)
