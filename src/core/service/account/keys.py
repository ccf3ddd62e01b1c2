"""
SessionStore key layout.

session:<account_id>                           live refresh token (one per account)
charge:<account_id>:<YYYYMMDD>:<digest>        outstanding charge request
"""

from datetime import datetime
from uuid import UUID

SESSION_KEY_PREFIX = "session:"
CHARGE_KEY_PREFIX = "charge:"


def session_key(account_id: UUID) -> str:
    return f"{SESSION_KEY_PREFIX}{account_id}"


def charge_window(moment: datetime) -> str:
    """Day bucket a charge request belongs to"""
    return moment.strftime("%Y%m%d")


def charge_key(account_id: UUID, window: str, digest: str) -> str:
    return f"{CHARGE_KEY_PREFIX}{account_id}:{window}:{digest}"


def charge_window_pattern(account_id: UUID, window: str) -> str:
    return f"{CHARGE_KEY_PREFIX}{account_id}:{window}:*"


def charge_account_pattern(account_id: UUID) -> str:
    return f"{CHARGE_KEY_PREFIX}{account_id}:*"


def lock_name(namespace: str, account_id: UUID) -> str:
    return f"{namespace}:{account_id}"
