"""
Account domain model
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, ValidationError, model_validator

from src.core.exceptions.base import InsufficientFundsError, ValidationFailedError


class UserRole(str, Enum):
    """Entitlement level"""
    USER = "USER"
    PAID = "PAID"
    ADMIN = "ADMIN"


class AccountStatus(str, Enum):
    """Account lifecycle status; only ACTIVE accounts may sign in"""
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    DORMANT = "DORMANT"


def parse_enum(enum_cls, value: Union[str, Enum]):
    """Resolve a raw value to an enum member, rejecting unknown values"""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationFailedError(
            f"Unknown {enum_cls.__name__} value",
            detail={"value": str(value), "allowed": [m.value for m in enum_cls]}
        )


class Account(BaseModel):
    """Identity and entitlement record"""
    id: UUID = Field(default_factory=uuid4)
    email: str
    password_hash: str
    nickname: str
    cash: int = Field(default=1000, ge=0)
    role: UserRole = UserRole.USER
    status: AccountStatus = AccountStatus.ACTIVE
    payment_date: Optional[str] = None
    withdraw_expiration: Optional[date] = None
    statement: List[str] = Field(default_factory=list)
    charging_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _dormant_requires_expiration(self) -> "Account":
        if self.status == AccountStatus.DORMANT and self.withdraw_expiration is None:
            raise ValueError("dormant account requires withdraw_expiration")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE

    def set_role(self, role: Union[str, UserRole]) -> None:
        self.role = parse_enum(UserRole, role)

    def set_status(self, status: Union[str, AccountStatus], expiration: Optional[date] = None) -> None:
        new_status = parse_enum(AccountStatus, status)
        if new_status == AccountStatus.DORMANT:
            if expiration is None:
                raise ValidationFailedError("Dormant status requires a withdraw expiration")
            self.withdraw_expiration = expiration
        else:
            self.withdraw_expiration = None
        self.status = new_status

    def credit(self, amount: int) -> None:
        if amount <= 0:
            raise ValidationFailedError("Credit amount must be positive", detail={"amount": amount})
        self.cash += amount

    def debit(self, amount: int) -> None:
        if amount <= 0:
            raise ValidationFailedError("Debit amount must be positive", detail={"amount": amount})
        if self.cash < amount:
            raise InsufficientFundsError(required=amount, available=self.cash)
        self.cash -= amount

    def append_statement(self, amount: int, when: Union[date, datetime]) -> str:
        day = when.date() if isinstance(when, datetime) else when
        entry = f"{day.isoformat()},{amount}"
        self.statement.append(entry)
        return entry


class SignUpResult(BaseModel):
    """Outcome of sign up; 201 for a new account, 200 for a reactivation"""
    status_code: int
    message: str
    account_id: UUID

    @property
    def created(self) -> bool:
        return self.status_code == 201


class PaidSubscriptionRequest(BaseModel):
    """Carries a cancellation message; absent message means subscribe"""
    msg: Optional[str] = None


class StatementEntry(BaseModel):
    entry_date: date
    amount: int

    @classmethod
    def parse(cls, raw: str) -> Optional["StatementEntry"]:
        """Parse a "<date>,<amount>" entry; None when malformed"""
        day, _, amount = raw.partition(",")
        try:
            return cls(entry_date=date.fromisoformat(day.strip()), amount=int(amount))
        except (ValueError, ValidationError):
            return None
