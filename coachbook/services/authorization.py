"""
Role-based access to appointment records.

An appointment is owned by its instructor. Admins may touch every record;
every other role is limited to records it owns. Read-many operations do not
deny: the policy narrows the query to the actor's own records instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import enum

from coachbook.models.user import UserRole


class Action(str, enum.Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Actor:
    """A verified identity handed to the services by the identity layer."""

    actor_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return normalize_role(self.role) == UserRole.ADMIN.value


def normalize_role(role: str | None) -> str:
    return (role or "").strip().lower()


class AuthorizationPolicy(ABC):
    @abstractmethod
    def can_access(self, actor_id: str, resource_owner_id: str | None, action: Action) -> bool:
        """Return True when the actor may perform ``action`` on a record owned by ``resource_owner_id``."""

    @abstractmethod
    def scope_owner_id(self, actor_id: str) -> str | None:
        """Owner id every read-many query must be narrowed to, or None for no narrowing."""


class AdminPolicy(AuthorizationPolicy):
    def can_access(self, actor_id: str, resource_owner_id: str | None, action: Action) -> bool:
        return True

    def scope_owner_id(self, actor_id: str) -> str | None:
        return None


class OwnerScopedPolicy(AuthorizationPolicy):
    def can_access(self, actor_id: str, resource_owner_id: str | None, action: Action) -> bool:
        return bool(actor_id) and actor_id == resource_owner_id

    def scope_owner_id(self, actor_id: str) -> str | None:
        return actor_id


_ADMIN_POLICY = AdminPolicy()
_OWNER_SCOPED_POLICY = OwnerScopedPolicy()


def policy_for(role: str | None) -> AuthorizationPolicy:
    if normalize_role(role) == UserRole.ADMIN.value:
        return _ADMIN_POLICY
    return _OWNER_SCOPED_POLICY


def can_access(actor_role: str | None, actor_id: str, resource_owner_id: str | None, action: Action) -> bool:
    return policy_for(actor_role).can_access(actor_id, resource_owner_id, action)
