"""In-memory user storage for the mock auth server. State lives per process."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class MockUser:
    email: str
    password_hash: str
    user_id: str
    phone: str
    is_business: bool = False
    is_email_verified: bool = False
    id: str = field(default_factory=lambda: f"user_{uuid.uuid4().hex[:12]}")
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class UserStore:
    def __init__(self) -> None:
        self._users: dict[str, MockUser] = {}

    def __len__(self) -> int:
        return len(self._users)

    def clear(self) -> None:
        self._users.clear()


_store = UserStore()


def get_store() -> UserStore:
    return _store


async def get_by_email(store: UserStore, email: str) -> MockUser | None:
    return store._users.get(email.strip().lower())


async def get_by_id(store: UserStore, user_id: str) -> MockUser | None:
    return next((u for u in store._users.values() if u.id == user_id), None)


async def create(store: UserStore, user: MockUser) -> MockUser:
    store._users[user.email.strip().lower()] = user
    return user


async def mark_email_verified(store: UserStore, user: MockUser) -> MockUser:
    user.is_email_verified = True
    return user
