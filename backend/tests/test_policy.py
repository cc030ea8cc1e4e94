import pytest

from wallet.core.errors import Forbidden
from wallet.services.policy import authorize, is_allowed
from wallet.services.store import Role

from conftest import make_claims


def test_owner_can_access_own_resource():
    alice = make_claims("alice-id")
    authorize(alice, resource_owner_id="alice-id")
    assert is_allowed(alice, "alice-id")


def test_other_user_is_forbidden():
    alice = make_claims("alice-id")
    with pytest.raises(Forbidden) as exc:
        authorize(alice, resource_owner_id="bob-id")
    # nothing about the target leaks into the message
    assert "bob" not in exc.value.message


def test_forbidden_for_unknown_target_looks_the_same():
    alice = make_claims("alice-id")
    with pytest.raises(Forbidden) as a:
        authorize(alice, resource_owner_id="bob-id")
    with pytest.raises(Forbidden) as b:
        authorize(alice, resource_owner_id="does-not-exist")
    assert a.value.message == b.value.message


def test_admin_can_access_any_resource():
    admin = make_claims("admin-id", role=Role.ADMIN)
    authorize(admin, resource_owner_id="bob-id")
    authorize(admin, resource_owner_id="admin-id")


@pytest.mark.parametrize("owner", [None, "alice-id", "bob-id"])
def test_admin_only_operation_rejects_users(owner):
    alice = make_claims("alice-id")
    with pytest.raises(Forbidden):
        authorize(alice, resource_owner_id=owner, required_role=Role.ADMIN)


def test_admin_only_operation_allows_admin():
    admin = make_claims("admin-id", role=Role.ADMIN)
    authorize(admin, required_role=Role.ADMIN)


def test_authenticated_only_is_allowed():
    assert is_allowed(make_claims("alice-id"))
