"""
Collaborator interfaces consumed by the account services.
Concrete adapters live in src/core/service/auth and src/infra/repository.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Iterable, List, Optional, Set
from uuid import UUID

from src.core.service.account.models.account import Account, AccountStatus
from src.core.service.auth.models.token import TokenPayload, TokenType
from src.core.service.charge.models import ChargeRequest


class CredentialHasher(ABC):
    """One-way password hashing"""

    @abstractmethod
    def hash(self, plaintext: str) -> str:
        pass

    @abstractmethod
    def verify(self, plaintext: str, hashed: str) -> bool:
        pass


class TokenIssuer(ABC):
    """Signed access/refresh tokens bound to (subject id, email)"""

    @abstractmethod
    def access_token(self, subject_id: UUID, email: str) -> str:
        pass

    @abstractmethod
    def refresh_token(self, subject_id: UUID, email: str) -> str:
        pass

    @abstractmethod
    def decode(self, token: str, expected_type: Optional[TokenType] = None) -> TokenPayload:
        """Validate a token and return its payload"""
        pass


class SessionStore(ABC):
    """Key-value store with per-key TTL"""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a key; a missing key is not an error"""
        pass

    @abstractmethod
    async def keys_matching(self, pattern: str) -> Set[str]:
        """Glob-style key enumeration"""
        pass

    @abstractmethod
    async def multi_get(self, keys: Iterable[str]) -> List[Optional[str]]:
        """Values in the same order as the given keys"""
        pass

    @abstractmethod
    def lock(self, name: str) -> AsyncContextManager:
        """Mutual exclusion for a named check-then-act sequence"""
        pass


class AccountRepository(ABC):
    """Persisted Account records"""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Account]:
        pass

    @abstractmethod
    async def find_by_id(self, account_id: UUID) -> Optional[Account]:
        pass

    @abstractmethod
    async def find_by_status(self, status: AccountStatus) -> List[Account]:
        pass

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool:
        pass

    @abstractmethod
    async def exists_by_nickname(self, nickname: str) -> bool:
        pass

    @abstractmethod
    async def save(self, account: Account) -> Account:
        pass

    @abstractmethod
    async def delete(self, account_id: UUID) -> None:
        pass


class ChargeRequestRepository(ABC):
    """Audit trail of accepted charge requests"""

    @abstractmethod
    async def save(self, charge: ChargeRequest) -> None:
        pass
