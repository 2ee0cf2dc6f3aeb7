"""Role-based access control for privileged manager operations.

ADMIN grants and revokes roles, GUARDIAN moderates disputes, PAUSER halts
and resumes mutations. Accounts are compared as checksummed addresses.
"""

from __future__ import annotations

from agreement_clearinghouse.domain.enums import Role
from agreement_clearinghouse.domain.exceptions import MissingRoleError


class AccessControl:
    """Holds role memberships for one manager instance."""

    def __init__(self, admin: str | None = None) -> None:
        self._members: dict[Role, set[str]] = {role: set() for role in Role}
        if admin is not None:
            for role in Role:
                self._members[role].add(admin)

    def has_role(self, role: Role, account: str) -> bool:
        return account in self._members[role]

    def require(self, role: Role, account: str) -> None:
        if not self.has_role(role, account):
            raise MissingRoleError(account, role.value)

    def grant(self, role: Role, account: str) -> bool:
        """Add ``account`` to ``role``. Returns False if it was already a member."""
        members = self._members[role]
        if account in members:
            return False
        members.add(account)
        return True

    def revoke(self, role: Role, account: str) -> bool:
        """Remove ``account`` from ``role``. Returns False if it was not a member."""
        members = self._members[role]
        if account not in members:
            return False
        members.remove(account)
        return True

    def members(self, role: Role) -> list[str]:
        return sorted(self._members[role])
