"""Service for managing users and the group registry."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import uuid4

from marathon_app.core.errors import InvalidUserError, UnknownGroupError, UnknownUserError
from marathon_app.core.models import User, UserRole


@dataclass(slots=True, frozen=True)
class GroupSummary:
    name: str
    member_count: int


class Roster:
    """Keeps users in join order, which is the ranking tie-break order."""

    def __init__(self) -> None:
        self._users: list[User] = []
        self._groups: list[str] = []

    def load(self, users: Iterable[User], groups: Iterable[str]) -> None:
        self._users = list(users)
        self._groups = []
        for name in groups:
            self._register_group(name)

    def get_users(self) -> list[User]:
        """Return the live user objects; callers copy before handing them out."""
        return list(self._users)

    def get_user(self, user_id: str) -> User:
        for user in self._users:
            if user.id == user_id:
                return user
        raise UnknownUserError(user_id)

    def find_participant_by_name(self, name: str) -> User | None:
        cleaned = name.strip()
        return next(
            (u for u in self._users if u.name == cleaned and u.is_participant),
            None,
        )

    def join(self, name: str, group: str) -> User:
        """Register a new participant with a zero score."""
        cleaned_name = name.strip()
        cleaned_group = group.strip()
        if not cleaned_name:
            raise InvalidUserError("Name must not be empty.")
        if not cleaned_group:
            raise InvalidUserError("Group must not be empty.")

        user = User(
            id=f"u-{uuid4().hex}",
            name=cleaned_name,
            group=cleaned_group,
            role=UserRole.PARTICIPANT,
            total_score=0,
        )
        self._register_group(cleaned_group)
        self._users.append(user)
        return user

    def update_user(
        self,
        user_id: str,
        name: str | None = None,
        group: str | None = None,
        total_score: int | None = None,
    ) -> User:
        """Admin edit. A changed ``total_score`` may drift from the ledger."""
        user = self.get_user(user_id)
        if name is not None and not name.strip():
            raise InvalidUserError("Name must not be empty.")
        if group is not None and not group.strip():
            raise InvalidUserError("Group must not be empty.")

        if name is not None:
            user.name = name.strip()
        if group is not None:
            user.group = group.strip()
        if total_score is not None:
            user.total_score = total_score
        return user

    def delete_user(self, user_id: str) -> User:
        user = self.get_user(user_id)
        self._users.remove(user)
        return user

    def search_users(self, query: str = "") -> list[User]:
        needle = query.strip().lower()
        matches = [
            u for u in self._users if needle in u.name.lower() or needle in u.group.lower()
        ]
        return sorted(matches, key=lambda u: -u.total_score)

    # --- Groups ---

    def get_group_names(self) -> list[str]:
        """Registry entries followed by any member group not yet registered."""
        names = list(self._groups)
        for user in self._users:
            if user.group not in names:
                names.append(user.group)
        return names

    def get_registered_groups(self) -> list[str]:
        return list(self._groups)

    def list_groups(self) -> list[GroupSummary]:
        return [
            GroupSummary(name=name, member_count=sum(1 for u in self._users if u.group == name))
            for name in self.get_group_names()
        ]

    def add_group(self, name: str) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise InvalidUserError("Group name must not be empty.")
        self._register_group(cleaned)
        return cleaned

    def rename_group(self, old_name: str, new_name: str) -> int:
        """Rename a group and move its members; returns the number moved."""
        if old_name not in self.get_group_names():
            raise UnknownGroupError(old_name)
        cleaned = new_name.strip()
        if not cleaned:
            raise InvalidUserError("Group name must not be empty.")
        if cleaned == old_name:
            return 0

        if old_name in self._groups:
            index = self._groups.index(old_name)
            if cleaned in self._groups:
                self._groups.pop(index)
            else:
                self._groups[index] = cleaned
        else:
            self._register_group(cleaned)

        moved = 0
        for user in self._users:
            if user.group == old_name:
                user.group = cleaned
                moved += 1
        return moved

    def delete_group(self, name: str) -> None:
        """Drop a registry entry; members keep their group value."""
        if name not in self._groups:
            raise UnknownGroupError(name)
        self._groups.remove(name)

    def _register_group(self, name: str) -> None:
        if name not in self._groups:
            self._groups.append(name)
