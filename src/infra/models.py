"""
SQLAlchemy ORM models for database tables
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, Date, DateTime, Index, JSON, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
import uuid

Base = declarative_base()


class AccountModel(Base):
    """SQLAlchemy ORM model for accounts table"""

    __tablename__ = "accounts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(50), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    nickname = Column(String(10), nullable=False, unique=True)
    cash = Column(Integer, default=1000, nullable=False)
    role = Column(String(12), default="USER", nullable=False)
    status = Column(String(12), default="ACTIVE", nullable=False)
    payment_date = Column(String(50), nullable=True)
    withdraw_expiration = Column(Date, nullable=True)
    # Ordered ledger entries; list order is the insertion order
    statement = Column(JSON, default=list, nullable=False)
    charging_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_accounts_status', 'status'),
        Index('idx_accounts_status_email', 'status', 'email'),
    )

    def __repr__(self):
        return f"<Account(email='{self.email}', nickname='{self.nickname}', status='{self.status}')>"


class ChargeRequestModel(Base):
    """SQLAlchemy ORM model for charge_requests table"""

    __tablename__ = "charge_requests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False)
    amount = Column(Integer, nullable=False)
    message = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index('idx_charge_requests_owner', 'owner_id'),
        Index('idx_charge_requests_created', 'created_at'),
    )

    def __repr__(self):
        return f"<ChargeRequest(owner='{self.owner_id}', amount={self.amount})>"
