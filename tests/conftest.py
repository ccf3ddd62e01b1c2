"""
Shared fixtures: in-memory SessionStore and AccountRepository doubles
wired into the real services.
"""

import asyncio
import fnmatch
import time
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

import pytest

from src.core.service.account.interfaces import (
    AccountRepository,
    ChargeRequestRepository,
    CredentialHasher,
    SessionStore,
)
from src.core.service.account.lifecycle_service import AccountLifecycleService
from src.core.service.account.models.account import Account, AccountStatus
from src.core.service.auth.jwt_service import JWTService
from src.core.service.auth.session_service import SessionService
from src.core.service.charge.charge_throttler import ChargeThrottler
from src.core.service.charge.models import ChargeRequest
from src.core.service.statement.statement_ledger import StatementLedger

TEST_EMAIL = "a@x.com"
TEST_PASSWORD = "password1234"
TEST_NICKNAME = "alice"


class InMemorySessionStore(SessionStore):
    def __init__(self):
        self.data: Dict[str, Tuple[str, float]] = {}
        self.ttls: Dict[str, int] = {}
        self.locks: Dict[str, asyncio.Lock] = {}

    def _alive(self, key: str) -> bool:
        entry = self.data.get(key)
        if entry is None:
            return False
        if entry[1] <= time.monotonic():
            del self.data[key]
            return False
        return True

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.data[key] = (value, time.monotonic() + ttl_seconds)
        self.ttls[key] = ttl_seconds

    async def get(self, key: str) -> Optional[str]:
        return self.data[key][0] if self._alive(key) else None

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)

    async def keys_matching(self, pattern: str) -> Set[str]:
        return {key for key in list(self.data) if self._alive(key) and fnmatch.fnmatchcase(key, pattern)}

    async def multi_get(self, keys: Iterable[str]) -> List[Optional[str]]:
        return [await self.get(key) for key in keys]

    def lock(self, name: str):
        return self.locks.setdefault(name, asyncio.Lock())


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self.accounts: Dict[UUID, Account] = {}
        self.save_count = 0

    async def find_by_email(self, email: str) -> Optional[Account]:
        for account in self.accounts.values():
            if account.email == email:
                return account.model_copy(deep=True)
        return None

    async def find_by_id(self, account_id: UUID) -> Optional[Account]:
        account = self.accounts.get(account_id)
        return account.model_copy(deep=True) if account else None

    async def find_by_status(self, status: AccountStatus) -> List[Account]:
        return [a.model_copy(deep=True) for a in self.accounts.values() if a.status == status]

    async def exists_by_email(self, email: str) -> bool:
        return any(a.email == email for a in self.accounts.values())

    async def exists_by_nickname(self, nickname: str) -> bool:
        return any(a.nickname == nickname for a in self.accounts.values())

    async def save(self, account: Account) -> Account:
        for other in self.accounts.values():
            if other.id != account.id and (other.email == account.email or other.nickname == account.nickname):
                raise ValueError("unique constraint violated")
        self.accounts[account.id] = account.model_copy(deep=True)
        self.save_count += 1
        return account

    async def delete(self, account_id: UUID) -> None:
        self.accounts.pop(account_id, None)


class InMemoryChargeRequestRepository(ChargeRequestRepository):
    def __init__(self):
        self.saved: List[ChargeRequest] = []

    async def save(self, charge: ChargeRequest) -> None:
        self.saved.append(charge)


class PlainHasher(CredentialHasher):
    """Reversible stand-in so tests stay fast; argon2 is covered separately"""

    def hash(self, plaintext: str) -> str:
        return f"hashed:{plaintext}"

    def verify(self, plaintext: str, hashed: str) -> bool:
        return hashed == f"hashed:{plaintext}"


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def account_repository():
    return InMemoryAccountRepository()


@pytest.fixture
def charge_repository():
    return InMemoryChargeRequestRepository()


@pytest.fixture
def hasher():
    return PlainHasher()


@pytest.fixture
def jwt_service():
    return JWTService(secret_key="test-secret-key-with-enough-length!")


@pytest.fixture
def lifecycle_service(account_repository, hasher, session_store, clock):
    return AccountLifecycleService(account_repository, hasher, session_store, clock=clock)


@pytest.fixture
def session_service(account_repository, hasher, jwt_service, session_store):
    return SessionService(account_repository, hasher, jwt_service, session_store)


@pytest.fixture
def ledger(account_repository):
    return StatementLedger(account_repository)


@pytest.fixture
def throttler(session_store, account_repository, ledger, charge_repository, clock):
    return ChargeThrottler(session_store, account_repository, ledger, charge_repository, clock=clock)


@pytest.fixture
async def account(lifecycle_service, account_repository):
    """A freshly signed up ACTIVE account"""
    result = await lifecycle_service.sign_up(TEST_EMAIL, TEST_PASSWORD, TEST_NICKNAME)
    return await account_repository.find_by_id(result.account_id)
