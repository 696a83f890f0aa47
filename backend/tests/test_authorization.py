import pytest

from cargo_certs.models import RoleName
from cargo_certs.services.authorization import (
    Action,
    check_access,
    list_scope,
    require_access,
)
from cargo_certs.services.errors import NotAuthenticatedError, UnauthorizedError
from factories import StubProfile, stub_admin, stub_broker

RECORD_ACTIONS = [
    Action.contract_read,
    Action.certificate_read,
    Action.certificate_create,
    Action.certificate_update,
    Action.certificate_delete,
]


@pytest.mark.parametrize("action", list(Action))
def test_admin_is_allowed_everything(action):
    assert check_access(stub_admin(), action, "ANY").allowed


@pytest.mark.parametrize("action", [Action.contract_manage, Action.profile_manage])
def test_admin_only_actions_deny_brokers(action):
    decision = check_access(stub_broker("BRK001"), action, "BRK001")
    assert not decision.allowed
    assert decision.reason == "Unauthorized: Admin access required"


@pytest.mark.parametrize("action", RECORD_ACTIONS)
def test_broker_needs_matching_code(action):
    broker = stub_broker("BRK001")
    assert check_access(broker, action, "BRK001").allowed
    assert not check_access(broker, action, "BRK002").allowed


@pytest.mark.parametrize("action", RECORD_ACTIONS)
def test_broker_without_code_is_denied_even_for_null_targets(action):
    broker = stub_broker(None)
    assert not check_access(broker, action, None).allowed
    assert not check_access(broker, action, "BRK001").allowed


def test_list_actions_allowed_for_any_broker():
    assert check_access(stub_broker(None), Action.certificate_list).allowed
    assert check_access(stub_broker("BRK001"), Action.contract_list).allowed


def test_missing_profile_is_denied():
    assert not check_access(None, Action.certificate_list).allowed


def test_require_access_raises_with_reason():
    with pytest.raises(UnauthorizedError) as exc:
        require_access(stub_broker("BRK001"), Action.certificate_read, "BRK002")
    assert exc.value.message == "Unauthorized: Cannot access this certificate"
    assert exc.value.status_code == 403

    with pytest.raises(NotAuthenticatedError):
        require_access(None, Action.certificate_list)


def test_list_scope():
    admin_scope = list_scope(stub_admin())
    assert admin_scope.all_rows and not admin_scope.empty

    broker_scope = list_scope(stub_broker(" BRK001 "))
    assert not broker_scope.all_rows
    assert broker_scope.broker_code == "BRK001"

    assert list_scope(StubProfile(RoleName.broker, "")).empty
