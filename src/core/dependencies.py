"""
FastAPI dependency injection functions.
Each service is constructed explicitly from its collaborators.
"""

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from src.infra.config.redis import get_redis
from src.infra.database import get_async_session
from src.infra.repository.account_repository import SqlAccountRepository
from src.infra.repository.charge_request_repository import SqlChargeRequestRepository
from src.core.service.account.interfaces import (
    AccountRepository,
    ChargeRequestRepository,
    CredentialHasher,
    SessionStore,
    TokenIssuer,
)
from src.core.service.account.lifecycle_service import AccountLifecycleService
from src.core.service.auth.cache.session_store import RedisSessionStore
from src.core.service.auth.jwt_service import JWTService
from src.core.service.auth.password_service import PasswordHasherService
from src.core.service.auth.session_service import SessionService
from src.core.service.charge.charge_throttler import ChargeThrottler
from src.core.service.statement.statement_ledger import StatementLedger

_hasher = PasswordHasherService()


async def get_redis_client() -> Redis:
    """Get Redis client dependency."""
    return await get_redis()


def get_hasher() -> CredentialHasher:
    return _hasher


def get_token_issuer() -> TokenIssuer:
    return JWTService()


async def get_session_store(redis_client: Redis = Depends(get_redis_client)) -> SessionStore:
    """Get session store with Redis dependency."""
    return RedisSessionStore(redis_client)


async def get_account_repository(session: AsyncSession = Depends(get_async_session)) -> AccountRepository:
    """Get account repository with SQLAlchemy session dependency."""
    return SqlAccountRepository(session)


async def get_charge_request_repository(
    session: AsyncSession = Depends(get_async_session)
) -> ChargeRequestRepository:
    return SqlChargeRequestRepository(session)


async def get_lifecycle_service(
    account_repository: AccountRepository = Depends(get_account_repository),
    hasher: CredentialHasher = Depends(get_hasher),
    session_store: SessionStore = Depends(get_session_store)
) -> AccountLifecycleService:
    return AccountLifecycleService(account_repository, hasher, session_store)


async def get_session_service(
    account_repository: AccountRepository = Depends(get_account_repository),
    hasher: CredentialHasher = Depends(get_hasher),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    session_store: SessionStore = Depends(get_session_store)
) -> SessionService:
    return SessionService(account_repository, hasher, token_issuer, session_store)


async def get_statement_ledger(
    account_repository: AccountRepository = Depends(get_account_repository)
) -> StatementLedger:
    return StatementLedger(account_repository)


async def get_charge_throttler(
    session_store: SessionStore = Depends(get_session_store),
    account_repository: AccountRepository = Depends(get_account_repository),
    ledger: StatementLedger = Depends(get_statement_ledger),
    charge_repository: ChargeRequestRepository = Depends(get_charge_request_repository)
) -> ChargeThrottler:
    return ChargeThrottler(session_store, account_repository, ledger, charge_repository)
