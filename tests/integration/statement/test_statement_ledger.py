import pytest
from datetime import date, datetime, timezone
from uuid import uuid4

from src.core.exceptions.base import AccountNotFoundError, NoDataError


@pytest.mark.asyncio
async def test_append_entry_keeps_order(ledger, account_repository, account):
    """Should append entries after the existing ones"""
    await ledger.append_entry(account, 5000, date(2026, 10, 1))
    await ledger.append_entry(account, -3000, datetime(2026, 9, 30, 23, 0, tzinfo=timezone.utc))
    await ledger.append_entry(account, 1000, date(2026, 10, 2))

    stored = await account_repository.find_by_id(account.id)
    assert stored.statement == ["2026-10-01,5000", "2026-09-30,-3000", "2026-10-02,1000"]


@pytest.mark.asyncio
async def test_get_statement_filters_month(ledger, account):
    """Should return only the month's entries in insertion order"""
    await ledger.append_entry(account, 5000, date(2026, 10, 20))
    await ledger.append_entry(account, 2000, date(2026, 9, 30))
    await ledger.append_entry(account, 1000, date(2026, 10, 3))
    await ledger.append_entry(account, 7000, date(2025, 10, 3))

    entries = await ledger.get_statement(account.id, 2026, 10)

    assert [(e.entry_date, e.amount) for e in entries] == [
        (date(2026, 10, 20), 5000),
        (date(2026, 10, 3), 1000),
    ]


@pytest.mark.asyncio
async def test_get_statement_empty_month(ledger, account):
    await ledger.append_entry(account, 5000, date(2026, 10, 20))

    with pytest.raises(NoDataError):
        await ledger.get_statement(account.id, 2026, 11)


@pytest.mark.asyncio
async def test_get_statement_no_entries(ledger, account):
    with pytest.raises(NoDataError):
        await ledger.get_statement(account.id, 2026, 10)


@pytest.mark.asyncio
async def test_get_statement_unknown_account(ledger):
    with pytest.raises(AccountNotFoundError):
        await ledger.get_statement(uuid4(), 2026, 10)


@pytest.mark.asyncio
async def test_get_statement_skips_malformed(ledger, account_repository, account):
    account.statement.append("yesterday,100")
    await account_repository.save(account)
    await ledger.append_entry(account, 100, date(2026, 10, 5))

    entries = await ledger.get_statement(account.id, 2026, 10)
    assert len(entries) == 1


@pytest.mark.asyncio
async def test_credit_adds_cash(ledger, account_repository, account):
    await ledger.credit(account, 2500, date(2026, 10, 18))

    stored = await account_repository.find_by_id(account.id)
    assert stored.cash == 3500
    assert stored.statement == ["2026-10-18,2500"]
