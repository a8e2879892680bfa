from __future__ import annotations

import threading
from dataclasses import dataclass

SORT_KEYS = ("name", "email", "role")


@dataclass(frozen=True)
class User:
    id: int
    name: str
    email: str
    role: str


def _initial_users() -> list[User]:
    return [
        User(1, "Alice Johnson", "alice@example.com", "Admin"),
        User(4, "Diana Prince", "diana@example.com", "Admin"),
        User(6, "Fiona Green", "fiona@example.com", "Moderator"),
        User(2, "Bob Smith", "bob@example.com", "User"),
        User(3, "Charlie Brown", "charlie@example.com", "User"),
        User(5, "Evan Davis", "evan@example.com", "User"),
    ]


class UserStore:
    """Shared in-memory records; every operation holds the lock for its duration."""

    def __init__(self, users: list[User] | None = None) -> None:
        self._lock = threading.Lock()
        self._users = list(users) if users is not None else _initial_users()
        self._request_count = 0

    def query(self, *, filter_text: str = "", sort: str = "") -> list[User]:
        with self._lock:
            self._request_count += 1
            users = list(self._users)

        needle = filter_text.strip().lower()
        if needle:
            users = [
                u
                for u in users
                if needle in u.name.lower() or needle in u.email.lower() or needle in u.role.lower()
            ]
        if sort in SORT_KEYS:
            users.sort(key=lambda u: getattr(u, sort))
        return users

    @property
    def request_count(self) -> int:
        with self._lock:
            return self._request_count

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)
