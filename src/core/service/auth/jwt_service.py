import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from src.core.exceptions.base import InvalidCredentialError
from src.core.logger.logger import get_logger
from src.core.service.account.interfaces import TokenIssuer
from src.core.service.auth.models.token import TokenPayload, TokenType
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class JWTService(TokenIssuer):
    """Service for handling JWT token operations"""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
        refresh_token_expire_days: Optional[int] = None
    ):
        self.secret_key = secret_key or settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.access_token_expire_minutes = access_token_expire_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self.refresh_token_expire_days = refresh_token_expire_days or settings.REFRESH_TOKEN_EXPIRE_DAYS

    @property
    def refresh_ttl_seconds(self) -> int:
        """Lifetime of a refresh token, which is also the session lifetime"""
        return int(timedelta(days=self.refresh_token_expire_days).total_seconds())

    def _create_token(
        self,
        subject_id: UUID,
        email: str,
        token_type: TokenType,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a JWT token with the given parameters"""
        if expires_delta is None:
            if token_type == TokenType.ACCESS:
                expires_delta = timedelta(minutes=self.access_token_expire_minutes)
            else:
                expires_delta = timedelta(days=self.refresh_token_expire_days)

        issued_at = datetime.now(timezone.utc)

        to_encode = TokenPayload(
            sub=str(subject_id),
            email=email,
            exp=issued_at + expires_delta,
            iat=issued_at,
            type=token_type,
            jti=str(uuid.uuid4())
        )

        return jwt.encode(
            to_encode.model_dump(),
            self.secret_key,
            algorithm=self.algorithm
        )

    def access_token(self, subject_id: UUID, email: str) -> str:
        return self._create_token(subject_id, email, TokenType.ACCESS)

    def refresh_token(self, subject_id: UUID, email: str) -> str:
        return self._create_token(subject_id, email, TokenType.REFRESH)

    def decode(self, token: str, expected_type: Optional[TokenType] = None) -> TokenPayload:
        """
        Verify a JWT token and return its payload
        Raises InvalidCredentialError if token is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm]
            )
        except ExpiredSignatureError:
            logger.info(
                "Token expired",
                extra={"token_type": expected_type}
            )
            raise InvalidCredentialError("Token has expired")
        except InvalidTokenError as e:
            logger.warning(
                "Invalid token",
                extra={
                    "token_type": expected_type,
                    "error": str(e)
                }
            )
            raise InvalidCredentialError("Invalid token")

        token_data = TokenPayload(**payload)

        if expected_type is not None and token_data.type != expected_type:
            logger.warning(
                "Token type mismatch",
                extra={
                    "expected_type": expected_type,
                    "actual_type": token_data.type,
                    "account_id": token_data.sub
                }
            )
            raise InvalidCredentialError("Invalid token type")

        return token_data
