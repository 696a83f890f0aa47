"""Single capability check for every service entry point.

Admins are allowed everything. Brokers are allowed list operations (the list
itself is filtered by `list_scope`) and per-record operations only
when the record's broker_code equals their own non-null broker_code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cargo_certs import models
from cargo_certs.services.errors import NotAuthenticatedError, UnauthorizedError


class Action(str, Enum):
    contract_list = "contract.list"
    contract_read = "contract.read"
    contract_manage = "contract.manage"
    certificate_list = "certificate.list"
    certificate_read = "certificate.read"
    certificate_create = "certificate.create"
    certificate_update = "certificate.update"
    certificate_delete = "certificate.delete"
    profile_manage = "profile.manage"


_ADMIN_ONLY = {Action.contract_manage, Action.profile_manage}
_LIST_ACTIONS = {Action.contract_list, Action.certificate_list}

_DENY_REASONS = {
    Action.contract_manage: "Unauthorized: Admin access required",
    Action.profile_manage: "Unauthorized: Admin access required",
    Action.contract_read: "Unauthorized: Cannot access this contract",
    Action.certificate_read: "Unauthorized: Cannot access this certificate",
    Action.certificate_create: "Unauthorized: Cannot create certificate for this contract",
    Action.certificate_update: "Unauthorized: Cannot update this certificate",
    Action.certificate_delete: "Unauthorized: Cannot delete this certificate",
}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str = ""


def _normalized_code(value: Optional[str]) -> Optional[str]:
    s = str(value or "").strip()
    return s or None


def check_access(
    profile: Optional[models.Profile],
    action: Action,
    broker_code: Optional[str] = None,
) -> AccessDecision:
    if profile is None:
        return AccessDecision(False, "Unauthorized: Not authenticated")

    if profile.role == models.RoleName.admin:
        return AccessDecision(True, "admin")

    if action in _ADMIN_ONLY:
        return AccessDecision(False, _DENY_REASONS[action])

    if action in _LIST_ACTIONS:
        return AccessDecision(True, "broker list is filtered by broker_code")

    own_code = _normalized_code(profile.broker_code)
    if own_code is None:
        return AccessDecision(False, _DENY_REASONS[action])
    if own_code != _normalized_code(broker_code):
        return AccessDecision(False, _DENY_REASONS[action])
    return AccessDecision(True, "broker owns record")


def require_access(
    profile: Optional[models.Profile],
    action: Action,
    broker_code: Optional[str] = None,
) -> models.Profile:
    if profile is None:
        raise NotAuthenticatedError("Unauthorized: Not authenticated")
    decision = check_access(profile, action, broker_code)
    if not decision.allowed:
        raise UnauthorizedError(decision.reason)
    return profile


@dataclass(frozen=True)
class ListScope:
    """Row filter for list operations: everything, one broker, or nothing."""

    all_rows: bool
    broker_code: Optional[str] = None

    @property
    def empty(self) -> bool:
        return not self.all_rows and self.broker_code is None


def list_scope(profile: models.Profile) -> ListScope:
    if profile.role == models.RoleName.admin:
        return ListScope(all_rows=True)
    return ListScope(all_rows=False, broker_code=_normalized_code(profile.broker_code))
