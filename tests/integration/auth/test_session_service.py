import asyncio
import pytest
from uuid import UUID

from src.core.exceptions.base import (
    AccountNotActiveError,
    AccountNotFoundError,
    InvalidCredentialError,
    SessionConflictError,
)
from src.core.service.account.keys import session_key
from src.core.service.account.models.account import AccountStatus
from src.core.service.auth.models.token import TokenType

from conftest import TEST_EMAIL, TEST_PASSWORD


@pytest.mark.asyncio
async def test_sign_in_creates_session(session_service, session_store, jwt_service, account):
    """Should return an access token and store the refresh token"""
    access_token = await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)

    payload = jwt_service.decode(access_token, expected_type=TokenType.ACCESS)
    assert UUID(payload.sub) == account.id
    assert payload.email == TEST_EMAIL

    stored = await session_store.get(session_key(account.id))
    refresh_payload = jwt_service.decode(stored, expected_type=TokenType.REFRESH)
    assert UUID(refresh_payload.sub) == account.id
    assert session_store.ttls[session_key(account.id)] == 7 * 86400
    assert await session_service.has_session(account.id)


@pytest.mark.asyncio
async def test_sign_in_unknown_email(session_service):
    with pytest.raises(AccountNotFoundError):
        await session_service.sign_in("nobody@x.com", TEST_PASSWORD)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [AccountStatus.SUSPENDED, AccountStatus.DORMANT])
async def test_sign_in_inactive_account(session_service, lifecycle_service, session_store, account, status):
    """Should refuse sign in for suspended and dormant accounts"""
    await lifecycle_service.change_status(account, status)

    with pytest.raises(AccountNotActiveError) as exc_info:
        await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)

    assert exc_info.value.details == {"status": status.value}
    assert await session_store.get(session_key(account.id)) is None


@pytest.mark.asyncio
async def test_sign_in_wrong_password(session_service, session_store, account):
    with pytest.raises(InvalidCredentialError):
        await session_service.sign_in(TEST_EMAIL, "wrong-password")

    assert await session_store.get(session_key(account.id)) is None


@pytest.mark.asyncio
async def test_second_sign_in_conflicts_then_heals(session_service, session_store, account):
    """Should evict the live session on conflict so the next sign in succeeds"""
    await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)

    with pytest.raises(SessionConflictError):
        await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)

    assert await session_store.get(session_key(account.id)) is None

    access_token = await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)
    assert access_token
    assert await session_service.has_session(account.id)


@pytest.mark.asyncio
async def test_conflict_evicts_even_with_wrong_password(session_service, session_store, account):
    """Conflict handling runs before password verification"""
    await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)

    with pytest.raises(SessionConflictError):
        await session_service.sign_in(TEST_EMAIL, "wrong-password")

    assert not await session_service.has_session(account.id)


@pytest.mark.asyncio
async def test_concurrent_sign_ins_leave_one_session(session_service, session_store, account):
    """Should let exactly one of two simultaneous sign ins win"""
    results = await asyncio.gather(
        session_service.sign_in(TEST_EMAIL, TEST_PASSWORD),
        session_service.sign_in(TEST_EMAIL, TEST_PASSWORD),
        return_exceptions=True
    )

    conflicts = [r for r in results if isinstance(r, SessionConflictError)]
    tokens = [r for r in results if isinstance(r, str)]
    assert len(tokens) == 1
    assert len(conflicts) == 1


@pytest.mark.asyncio
async def test_sign_out_is_idempotent(session_service, account):
    await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)

    await session_service.sign_out(account)
    await session_service.sign_out(account)

    assert not await session_service.has_session(account.id)


@pytest.mark.asyncio
async def test_refresh_issues_access_token(session_service, session_store, jwt_service, account):
    await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)
    refresh_token = await session_store.get(session_key(account.id))

    access_token = await session_service.refresh(refresh_token)

    payload = jwt_service.decode(access_token, expected_type=TokenType.ACCESS)
    assert UUID(payload.sub) == account.id


@pytest.mark.asyncio
async def test_refresh_after_sign_out_rejected(session_service, session_store, account):
    """Should not accept a refresh token whose session was closed"""
    await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)
    refresh_token = await session_store.get(session_key(account.id))
    await session_service.sign_out(account)

    with pytest.raises(InvalidCredentialError):
        await session_service.refresh(refresh_token)


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(session_service, account):
    access_token = await session_service.sign_in(TEST_EMAIL, TEST_PASSWORD)

    with pytest.raises(InvalidCredentialError):
        await session_service.refresh(access_token)
