"""
Shared fixtures: a frozen clock and in-memory stand-ins for the user
store, the social graph and the email sender.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from social_auth.core.clock import Clock
from social_auth.core.exceptions import ConflictError, NotificationError
from social_auth.core.security import PasswordHasher, ResetCodeGenerator, TokenCodec
from social_auth.models import User, UserRole
from social_auth.repositories.user_repo import UserDirectory, normalize_identifier
from social_auth.services.access_control import AccessGate
from social_auth.services.auth_service import AuthService
from social_auth.utils.email import NotificationSender

PLATFORM_ACCOUNT_ID = uuid.UUID("00000000-0000-0000-0000-000000000043")
TEST_SECRET = "test-secret-key"


class FrozenClock(Clock):
    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class InMemoryUserDirectory(UserDirectory):
    def __init__(self, clock: Clock):
        self.clock = clock
        self.users: Dict[uuid.UUID, User] = {}
        self.saves = 0

    async def find_by_identifier(self, email=None, username=None) -> Optional[User]:
        email = normalize_identifier(email)
        username = normalize_identifier(username)
        for user in self.users.values():
            if (email and user.email == email) or (username and user.username == username):
                return user
        return None

    async def get_by_id(self, id: Any) -> Optional[User]:
        return self.users.get(uuid.UUID(str(id)))

    async def get_all_users(self, skip: int = 0, limit: int = 100) -> List[User]:
        return list(self.users.values())[skip:skip + limit]

    async def create(self, **fields) -> User:
        fields["email"] = normalize_identifier(fields.get("email"))
        fields["username"] = normalize_identifier(fields.get("username"))
        for user in self.users.values():
            if user.email == fields["email"] or user.username == fields["username"]:
                raise ConflictError("A user with this email or username already exists")

        fields.setdefault("role", UserRole.USER)
        user = User(id=uuid.uuid4(), created_at=self.clock.now(), **fields)
        self.users[user.id] = user
        return user

    async def save(self, user: User) -> None:
        self.saves += 1
        self.users[user.id] = user

    def remove(self, user: User) -> None:
        del self.users[user.id]


class RecordingNotifier(NotificationSender):
    def __init__(self):
        self.messages: List[dict] = []
        self.fail = False

    async def send(self, destination: str, subject: str, body: str) -> None:
        if self.fail:
            raise NotificationError("There was an error sending the email. Try again later!")
        self.messages.append({"to": destination, "subject": subject, "body": body})

    def last_code(self) -> str:
        body = self.messages[-1]["body"]
        return next(word for word in body.replace(".", " ").split() if word.isdigit() and len(word) == 6)


class RecordingSocialGraph:
    def __init__(self):
        self.follows: List[tuple] = []
        self.fail = False

    async def follow(self, user_id, target_user_id) -> None:
        if self.fail:
            raise RuntimeError("followings table is unavailable")
        self.follows.append((user_id, target_user_id))


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def directory(clock):
    return InMemoryUserDirectory(clock)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def social_graph():
    return RecordingSocialGraph()


@pytest.fixture
def hasher():
    # Lowest bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def codec(clock):
    return TokenCodec(
        secret=TEST_SECRET,
        algorithm="HS256",
        lifetime=timedelta(hours=1),
        clock=clock,
    )


@pytest.fixture
def codes():
    return ResetCodeGenerator(window_seconds=300)


@pytest.fixture
def auth_service(directory, notifier, hasher, codec, codes, clock, social_graph):
    return AuthService(
        directory=directory,
        notifier=notifier,
        hasher=hasher,
        codec=codec,
        codes=codes,
        clock=clock,
        follows=social_graph,
        default_follow_user_id=PLATFORM_ACCOUNT_ID,
    )


@pytest.fixture
def gate(directory, codec):
    return AccessGate(directory, codec)
