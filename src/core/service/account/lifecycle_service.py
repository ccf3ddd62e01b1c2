from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Union

from fastapi import status

from src.core.exceptions.base import (
    DuplicateCredentialError,
    InvalidConfirmationError,
    InvalidCredentialError,
    InvalidSubscriptionStateError,
)
from src.core.logger.logger import get_logger
from src.core.service.account.interfaces import AccountRepository, CredentialHasher, SessionStore
from src.core.service.account.keys import session_key
from src.core.service.account.models.account import (
    Account,
    AccountStatus,
    PaidSubscriptionRequest,
    SignUpResult,
    UserRole,
    parse_enum,
)
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AccountLifecycleService:
    """Sign up, reactivation, withdrawal and entitlement changes"""

    def __init__(
        self,
        account_repository: AccountRepository,
        hasher: CredentialHasher,
        session_store: SessionStore,
        clock: Callable[[], datetime] = utc_now
    ):
        self.account_repository = account_repository
        self.hasher = hasher
        self.session_store = session_store
        self.clock = clock
        self.seed_cash = settings.SIGNUP_SEED_CASH
        self.subscription_price = settings.SUBSCRIPTION_PRICE
        self.withdraw_phrase = settings.WITHDRAW_CONFIRMATION_PHRASE
        self.retention_days = settings.WITHDRAW_RETENTION_DAYS

    def _expiration(self) -> date:
        return self.clock().date() + timedelta(days=self.retention_days)

    async def sign_up(self, email: str, raw_password: str, nickname: str) -> SignUpResult:
        """
        Create an account, or reactivate a dormant one registered to this email.

        A dormant account comes back only when the password matches the one it
        was registered with; its cash and statement are left as they were.
        """
        existing = await self.account_repository.find_by_email(email)

        if existing is not None:
            if existing.status != AccountStatus.DORMANT:
                raise DuplicateCredentialError("email")
            return await self._reactivate(existing, raw_password)

        if await self.account_repository.exists_by_nickname(nickname):
            raise DuplicateCredentialError("nickname")

        account = Account(
            email=email,
            password_hash=self.hasher.hash(raw_password),
            nickname=nickname,
            cash=self.seed_cash,
            role=UserRole.USER,
            status=AccountStatus.ACTIVE
        )
        await self.account_repository.save(account)

        logger.info(
            "Account created",
            extra={"account_id": str(account.id), "email": email}
        )

        return SignUpResult(
            status_code=status.HTTP_201_CREATED,
            message="account created",
            account_id=account.id
        )

    async def _reactivate(self, account: Account, raw_password: str) -> SignUpResult:
        if not self.hasher.verify(raw_password, account.password_hash):
            raise InvalidCredentialError()

        account.set_status(AccountStatus.ACTIVE)
        await self.account_repository.save(account)

        logger.info(
            "Dormant account reactivated",
            extra={"account_id": str(account.id)}
        )

        return SignUpResult(
            status_code=status.HTTP_200_OK,
            message="account reactivated",
            account_id=account.id
        )

    async def update_profile(
        self,
        account: Account,
        email: Optional[str] = None,
        raw_password: Optional[str] = None,
        nickname: Optional[str] = None
    ) -> Account:
        """
        Change email, password and/or nickname. Omitted fields stay as they are.

        Raises:
            DuplicateCredentialError: email or nickname held by another account
        """
        email_changed = email is not None and email != account.email
        nickname_changed = nickname is not None and nickname != account.nickname

        if email_changed and await self.account_repository.exists_by_email(email):
            raise DuplicateCredentialError("email")
        if nickname_changed and await self.account_repository.exists_by_nickname(nickname):
            raise DuplicateCredentialError("nickname")

        if email_changed:
            account.email = email
        if nickname_changed:
            account.nickname = nickname
        if raw_password is not None:
            account.password_hash = self.hasher.hash(raw_password)

        await self.account_repository.save(account)

        logger.info(
            "Account profile updated",
            extra={
                "account_id": str(account.id),
                "email_changed": email_changed,
                "password_changed": raw_password is not None,
                "nickname_changed": nickname_changed
            }
        )
        return account

    async def withdraw(self, account: Account, confirmation_phrase: str) -> Account:
        """Soft-delete the account and close its session"""
        if confirmation_phrase != self.withdraw_phrase:
            raise InvalidConfirmationError()

        account.set_status(AccountStatus.DORMANT, expiration=self._expiration())
        await self.account_repository.save(account)
        await self.session_store.delete(session_key(account.id))

        logger.info(
            "Account withdrawn",
            extra={
                "account_id": str(account.id),
                "withdraw_expiration": account.withdraw_expiration.isoformat()
            }
        )
        return account

    async def set_paid_subscription(
        self,
        account: Account,
        request: Optional[PaidSubscriptionRequest] = None
    ) -> Account:
        """Subscribe when no cancellation message is given, otherwise record the cancellation"""
        if request is not None and request.msg:
            if account.role != UserRole.PAID:
                raise InvalidSubscriptionStateError("Only paid accounts can cancel", account.role.value)
            account.payment_date = request.msg
            await self.account_repository.save(account)
            logger.info(
                "Subscription cancellation recorded",
                extra={"account_id": str(account.id)}
            )
            return account

        if account.role != UserRole.USER:
            raise InvalidSubscriptionStateError("Account already has a paid entitlement", account.role.value)

        now = self.clock()
        account.debit(self.subscription_price)
        account.append_statement(-self.subscription_price, now)
        account.set_role(UserRole.PAID)
        account.payment_date = now.strftime("%Y-%m")
        await self.account_repository.save(account)

        logger.info(
            "Paid subscription started",
            extra={"account_id": str(account.id), "payment_date": account.payment_date}
        )
        return account

    def get_cash(self, account: Account) -> int:
        return account.cash

    async def change_status(self, account: Account, new_status: Union[str, AccountStatus]) -> Account:
        """Privileged status transition"""
        target = parse_enum(AccountStatus, new_status)
        account.set_status(
            target,
            expiration=self._expiration() if target == AccountStatus.DORMANT else None
        )
        await self.account_repository.save(account)
        if target != AccountStatus.ACTIVE:
            await self.session_store.delete(session_key(account.id))

        logger.info(
            "Account status changed",
            extra={"account_id": str(account.id), "status": target.value}
        )
        return account

    async def grant_admin(self, account: Account) -> Account:
        account.set_role(UserRole.ADMIN)
        await self.account_repository.save(account)
        logger.info("Admin role granted", extra={"account_id": str(account.id)})
        return account

    async def purge_expired(self, today: Optional[date] = None) -> int:
        """Erase dormant accounts whose retention window has passed"""
        today = today or self.clock().date()
        purged = 0
        for account in await self.account_repository.find_by_status(AccountStatus.DORMANT):
            if account.withdraw_expiration is not None and account.withdraw_expiration < today:
                await self.account_repository.delete(account.id)
                purged += 1

        if purged:
            logger.info("Expired dormant accounts purged", extra={"count": purged})
        return purged
