from typing import Optional
from uuid import UUID

from src.core.exceptions.base import (
    AccountNotActiveError,
    AccountNotFoundError,
    InvalidCredentialError,
    SessionConflictError,
)
from src.core.logger.logger import get_logger
from src.core.service.account.interfaces import (
    AccountRepository,
    CredentialHasher,
    SessionStore,
    TokenIssuer,
)
from src.core.service.account.keys import lock_name, session_key
from src.core.service.account.models.account import Account
from src.core.service.auth.models.token import TokenType
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class SessionService:
    """Sign in/out with at most one live session per account"""

    def __init__(
        self,
        account_repository: AccountRepository,
        hasher: CredentialHasher,
        token_issuer: TokenIssuer,
        session_store: SessionStore,
        refresh_ttl_seconds: Optional[int] = None
    ):
        self.account_repository = account_repository
        self.hasher = hasher
        self.token_issuer = token_issuer
        self.session_store = session_store
        self.refresh_ttl_seconds = refresh_ttl_seconds or settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400

    async def sign_in(self, email: str, raw_password: str) -> str:
        """
        Authenticate and open a session, returning the access token.

        A sign in attempt that finds a live session closes that session and
        fails with SessionConflict; the next attempt then succeeds. An
        abandoned session therefore never locks the account out.
        """
        account = await self.account_repository.find_by_email(email)
        if account is None:
            raise AccountNotFoundError("Incorrect email or password")

        if not account.is_active:
            raise AccountNotActiveError(account.status.value)

        key = session_key(account.id)
        async with self.session_store.lock(lock_name("session", account.id)):
            if await self.session_store.get(key) is not None:
                await self.session_store.delete(key)
                logger.warning(
                    "Conflicting sign in, previous session closed",
                    extra={"account_id": str(account.id)}
                )
                raise SessionConflictError()

            if not self.hasher.verify(raw_password, account.password_hash):
                raise InvalidCredentialError()

            refresh_token = self.token_issuer.refresh_token(account.id, account.email)
            access_token = self.token_issuer.access_token(account.id, account.email)
            await self.session_store.set(key, refresh_token, self.refresh_ttl_seconds)

        logger.info(
            "Session created",
            extra={"account_id": str(account.id)}
        )
        return access_token

    async def sign_out(self, account: Account) -> None:
        """Close the session; signing out twice is harmless"""
        await self.session_store.delete(session_key(account.id))
        logger.info(
            "Session closed",
            extra={"account_id": str(account.id)}
        )

    async def has_session(self, account_id: UUID) -> bool:
        return await self.session_store.get(session_key(account_id)) is not None

    async def refresh(self, refresh_token: str) -> str:
        """Issue a new access token for the refresh token of the live session"""
        payload = self.token_issuer.decode(refresh_token, expected_type=TokenType.REFRESH)
        account_id = UUID(payload.sub)

        stored = await self.session_store.get(session_key(account_id))
        if stored is None or stored != refresh_token:
            logger.warning(
                "Refresh token does not match the live session",
                extra={"account_id": str(account_id)}
            )
            raise InvalidCredentialError("Session is no longer valid")

        account = await self.account_repository.find_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()
        if not account.is_active:
            raise AccountNotActiveError(account.status.value)

        return self.token_issuer.access_token(account.id, account.email)
