"""Append-only per-account transaction history."""

from datetime import date, datetime
from typing import List, Union
from uuid import UUID

from src.core.exceptions.base import AccountNotFoundError, NoDataError
from src.core.logger.logger import get_logger
from src.core.service.account.interfaces import AccountRepository
from src.core.service.account.models.account import Account, StatementEntry

logger = get_logger(__name__)


class StatementLedger:
    """Statement entries are only ever appended, never reordered or removed."""

    def __init__(self, account_repository: AccountRepository):
        self.account_repository = account_repository

    async def append_entry(self, account: Account, amount: int, when: Union[date, datetime]) -> str:
        entry = account.append_statement(amount, when)
        await self.account_repository.save(account)

        logger.info(
            "Statement entry appended",
            extra={"account_id": str(account.id), "entry": entry}
        )
        return entry

    async def credit(self, account: Account, amount: int, when: Union[date, datetime]) -> str:
        """Add cash and record the deposit in one save."""
        account.credit(amount)
        return await self.append_entry(account, amount, when)

    async def get_statement(self, account_id: UUID, year: int, month: int) -> List[StatementEntry]:
        """
        Entries dated in the given month, in insertion order.

        Raises:
            AccountNotFoundError: unknown account id
            NoDataError: nothing recorded for that month
        """
        account = await self.account_repository.find_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()

        entries = []
        for raw in account.statement:
            entry = StatementEntry.parse(raw)
            if entry is None:
                logger.warning(
                    "Skipping malformed statement entry",
                    extra={"account_id": str(account_id), "entry": raw}
                )
                continue
            if entry.entry_date.year == year and entry.entry_date.month == month:
                entries.append(entry)

        if not entries:
            raise NoDataError("No statement entries for this month")
        return entries
