import pytest
from bson import ObjectId

from api.exceptions.api_exceptions import ApiException, ApiErrorCode
from api.models.enums import Role, ViewingStatus
from api.policies import (
    PropertyApproval,
    ViewingTransitions,
    ensure_not_self,
    ensure_owner_or_admin,
    ensure_roles,
    is_admin,
    resolve_role,
)


def user(role="user"):
    return {"_id": ObjectId(), "role": role}


def viewing(requester, owner, status="pending"):
    return {"_id": ObjectId(), "user_id": requester["_id"], "owner_id": owner["_id"], "status": status}


def test_unknown_role_gets_no_permissions():
    with pytest.raises(ApiException) as error:
        resolve_role({"_id": ObjectId(), "role": "superuser"})
    assert error.value.error_code is ApiErrorCode.INSUFFICIENT_PERMISSIONS
    assert error.value.status_code == 403


def test_is_admin_and_ensure_roles():
    assert is_admin(user("admin"))
    assert not is_admin(user("owner"))

    ensure_roles(user("owner"), Role.OWNER, Role.ADMIN)
    with pytest.raises(ApiException):
        ensure_roles(user("user"), Role.OWNER, Role.ADMIN)


def test_owner_or_admin_check():
    owner = user("owner")
    ensure_owner_or_admin(owner, owner["_id"])
    ensure_owner_or_admin(user("admin"), owner["_id"])

    with pytest.raises(ApiException) as error:
        ensure_owner_or_admin(user("owner"), owner["_id"], "Not authorized to update this property")
    assert error.value.status_code == 403
    assert error.value.message == "Not authorized to update this property"


def test_ensure_not_self():
    admin = user("admin")
    ensure_not_self(admin, ObjectId(), "Cannot delete your own account")
    with pytest.raises(ApiException) as error:
        ensure_not_self(admin, str(admin["_id"]), "Cannot delete your own account")
    assert error.value.error_code is ApiErrorCode.SELF_MODIFICATION_FORBIDDEN


def test_approve_and_reject_require_pending():
    assert PropertyApproval.approve({"status": "pending"})["status"] == "approved"

    rejected = PropertyApproval.reject({"status": "pending"})
    assert rejected == {"status": "rejected", "rejection_reason": "No reason provided"}

    for status in ("approved", "rejected"):
        with pytest.raises(ApiException) as error:
            PropertyApproval.approve({"status": status})
        assert error.value.error_code is ApiErrorCode.INVALID_PROPERTY_TRANSITION


def test_resubmit_only_by_owner_from_rejected():
    owner = user("owner")
    property_doc = {"owner_id": owner["_id"], "status": "rejected"}

    assert PropertyApproval.resubmit(property_doc, owner) == {"status": "pending", "is_resubmitted": True}

    with pytest.raises(ApiException) as error:
        PropertyApproval.resubmit(property_doc, user("admin"))
    assert error.value.status_code == 403

    with pytest.raises(ApiException) as error:
        PropertyApproval.resubmit({"owner_id": owner["_id"], "status": "pending"}, owner)
    assert error.value.message == "Only rejected properties can be resubmitted"


def test_owner_edit_of_approved_property_returns_it_to_review():
    owner = user("owner")
    approved = {"owner_id": owner["_id"], "status": "approved"}

    changes = PropertyApproval.edit(approved, owner, {"price": 900, "status": "approved"})
    assert changes == {"price": 900, "status": "pending"}

    assert PropertyApproval.edit(approved, user("admin"), {"price": 900}) == {"price": 900}
    rejected = {"owner_id": owner["_id"], "status": "rejected"}
    assert PropertyApproval.edit(rejected, owner, {"price": 900}) == {"price": 900}


def test_viewing_roles():
    requester, owner = user(), user("owner")
    pending = viewing(requester, owner)

    ViewingTransitions.ensure_allowed(pending, requester, ViewingStatus.CANCELLED)
    ViewingTransitions.ensure_allowed(pending, owner, ViewingStatus.CONFIRMED)
    ViewingTransitions.ensure_allowed(pending, user("admin"), ViewingStatus.REJECTED)

    with pytest.raises(ApiException) as error:
        ViewingTransitions.ensure_allowed(pending, requester, ViewingStatus.CONFIRMED)
    assert error.value.message == "Not authorized to update this viewing"

    with pytest.raises(ApiException) as error:
        ViewingTransitions.ensure_allowed(pending, owner, ViewingStatus.CANCELLED)
    assert error.value.message == "Not authorized to cancel this viewing"


@pytest.mark.parametrize("current, target", [
    ("confirmed", ViewingStatus.REJECTED),
    ("cancelled", ViewingStatus.CONFIRMED),
    ("completed", ViewingStatus.CANCELLED),
    ("rejected", ViewingStatus.CONFIRMED),
    ("pending", ViewingStatus.PENDING),
])
def test_viewing_invalid_transitions(current, target):
    requester, owner = user(), user("owner")
    admin = user("admin")
    with pytest.raises(ApiException) as error:
        ViewingTransitions.ensure_allowed(viewing(requester, owner, current), admin, target)
    assert error.value.error_code is ApiErrorCode.INVALID_VIEWING_TRANSITION
    assert error.value.status_code == 400


def test_confirmed_viewing_can_complete():
    requester, owner = user(), user("owner")
    ViewingTransitions.ensure_allowed(viewing(requester, owner, "confirmed"), owner, ViewingStatus.COMPLETED)
    ViewingTransitions.ensure_allowed(viewing(requester, owner, "confirmed"), requester, ViewingStatus.CANCELLED)
