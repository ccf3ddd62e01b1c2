"""
Admission control for charge requests.

Outstanding requests live as SessionStore keys bucketed by UTC day. A new
request is checked against one snapshot of the current bucket for both the
window cap and duplicate payloads, then against the per-cycle counter.
Every read-modify-write of the account record runs under the same
per-account lock.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from uuid import UUID

from pydantic import ValidationError

from src.core.exceptions.base import (
    AccountNotFoundError,
    DuplicateRequestError,
    NoDataError,
    RateLimitedError,
)
from src.core.logger.logger import get_logger
from src.core.service.account.interfaces import (
    AccountRepository,
    ChargeRequestRepository,
    SessionStore,
)
from src.core.service.account.keys import (
    charge_account_pattern,
    charge_key,
    charge_window,
    charge_window_pattern,
    lock_name,
)
from src.core.service.account.models.account import Account
from src.core.service.charge.models import ChargeRequest, ChargingRequest
from src.core.service.statement.statement_ledger import StatementLedger
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChargeThrottler:
    """Dedup and rate cap for charge submissions"""

    def __init__(
        self,
        session_store: SessionStore,
        account_repository: AccountRepository,
        ledger: StatementLedger,
        charge_repository: Optional[ChargeRequestRepository] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.session_store = session_store
        self.account_repository = account_repository
        self.ledger = ledger
        self.charge_repository = charge_repository
        self.clock = clock
        self.window_cap = settings.CHARGE_WINDOW_CAP
        self.cycle_limit = settings.CHARGING_CYCLE_LIMIT

    def _seconds_until_window_end(self, now: datetime) -> int:
        next_day = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        return max(int((next_day - now).total_seconds()), 1)

    async def submit(self, account: Account, request: ChargingRequest) -> ChargeRequest:
        """
        Register a charge request for the current window.

        The account is re-read under the lock so the cycle counter and the
        saved record reflect every earlier write. The caller's copy is
        brought up to date on success.

        Raises:
            AccountNotFoundError: account no longer exists
            RateLimitedError: window cap or cycle limit reached
            DuplicateRequestError: same amount and message already pending today
        """
        now = self.clock()
        window = charge_window(now)
        key = charge_key(account.id, window, request.digest())

        async with self.session_store.lock(lock_name("charge", account.id)):
            current = await self.account_repository.find_by_id(account.id)
            if current is None:
                raise AccountNotFoundError()

            outstanding = await self.session_store.keys_matching(
                charge_window_pattern(account.id, window)
            )

            if len(outstanding) >= self.window_cap:
                logger.warning(
                    "Charge window cap reached",
                    extra={"account_id": str(account.id), "outstanding": len(outstanding)}
                )
                raise RateLimitedError(
                    "Too many pending charge requests today",
                    limit=self.window_cap,
                    used=len(outstanding)
                )

            if key in outstanding:
                raise DuplicateRequestError()

            if current.charging_count >= self.cycle_limit:
                raise RateLimitedError(
                    "Charge request limit for this cycle reached",
                    limit=self.cycle_limit,
                    used=current.charging_count
                )

            charge = ChargeRequest(
                owner_id=account.id,
                amount=request.amount,
                message=request.message,
                created_at=now
            )

            await self.session_store.set(
                key,
                charge.model_dump_json(),
                self._seconds_until_window_end(now)
            )

            current.charging_count += 1
            try:
                await self.account_repository.save(current)
            except Exception:
                await self.session_store.delete(key)
                raise

            if self.charge_repository is not None:
                await self.charge_repository.save(charge)

        account.charging_count = current.charging_count

        logger.info(
            "Charge request accepted",
            extra={
                "account_id": str(account.id),
                "charge_id": str(charge.id),
                "amount": charge.amount,
                "charging_count": current.charging_count
            }
        )
        return charge

    async def _outstanding(self, account_id: UUID) -> List[tuple]:
        keys = sorted(await self.session_store.keys_matching(charge_account_pattern(account_id)))
        values = await self.session_store.multi_get(keys)

        pending = []
        for key, value in zip(keys, values):
            # Expired between SCAN and MGET
            if value is None:
                continue
            try:
                pending.append((key, ChargeRequest.model_validate_json(value)))
            except ValidationError:
                logger.warning(
                    "Skipping unreadable charge request",
                    extra={"key": key}
                )
        return pending

    async def list_charges(self, account_id: UUID) -> List[ChargeRequest]:
        """Outstanding requests of the account, newest first"""
        charges = [charge for _, charge in await self._outstanding(account_id)]
        if not charges:
            raise NoDataError("No pending charge requests")
        return sorted(charges, key=lambda charge: charge.created_at, reverse=True)

    async def _take(self, account_id: UUID, charge_id: UUID) -> tuple:
        for key, charge in await self._outstanding(account_id):
            if charge.id == charge_id:
                return key, charge
        raise NoDataError("Charge request not found")

    async def settle(self, account_id: UUID, charge_id: UUID) -> Account:
        """Credit a pending request to the account and close it"""
        async with self.session_store.lock(lock_name("charge", account_id)):
            account = await self.account_repository.find_by_id(account_id)
            if account is None:
                raise AccountNotFoundError()

            key, charge = await self._take(account_id, charge_id)
            await self.ledger.credit(account, charge.amount, self.clock())
            await self.session_store.delete(key)

        logger.info(
            "Charge request settled",
            extra={"account_id": str(account_id), "charge_id": str(charge_id), "amount": charge.amount}
        )
        return account

    async def discard(self, account_id: UUID, charge_id: UUID) -> None:
        async with self.session_store.lock(lock_name("charge", account_id)):
            key, _ = await self._take(account_id, charge_id)
            await self.session_store.delete(key)

        logger.info(
            "Charge request discarded",
            extra={"account_id": str(account_id), "charge_id": str(charge_id)}
        )

    async def reset_count(self, account_id: UUID) -> Account:
        """Start a new charging cycle; meant for an external scheduler"""
        async with self.session_store.lock(lock_name("charge", account_id)):
            account = await self.account_repository.find_by_id(account_id)
            if account is None:
                raise AccountNotFoundError()

            account.charging_count = 0
            await self.account_repository.save(account)

        logger.info("Charging count reset", extra={"account_id": str(account_id)})
        return account
