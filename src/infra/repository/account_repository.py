"""
Account repository using SQLAlchemy ORM
"""

from typing import List, Optional
from uuid import UUID
from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.service.account.interfaces import AccountRepository
from src.core.service.account.models.account import Account, AccountStatus, UserRole
from src.infra.models import AccountModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class SqlAccountRepository(AccountRepository):
    """Repository for account database operations using SQLAlchemy ORM"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: AccountModel) -> Account:
        """Convert SQLAlchemy model to Pydantic entity"""
        return Account(
            id=model.id,
            email=model.email,
            password_hash=model.password_hash,
            nickname=model.nickname,
            cash=model.cash,
            role=UserRole(model.role),
            status=AccountStatus(model.status),
            payment_date=model.payment_date,
            withdraw_expiration=model.withdraw_expiration,
            statement=list(model.statement or []),
            charging_count=model.charging_count
        )

    def _apply_entity(self, model: AccountModel, account: Account) -> None:
        model.email = account.email
        model.password_hash = account.password_hash
        model.nickname = account.nickname
        model.cash = account.cash
        model.role = account.role.value
        model.status = account.status.value
        model.payment_date = account.payment_date
        model.withdraw_expiration = account.withdraw_expiration
        # Fresh list so the JSON column is flagged dirty
        model.statement = list(account.statement)
        model.charging_count = account.charging_count

    async def _fetch_one(self, stmt) -> Optional[Account]:
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_by_email(self, email: str) -> Optional[Account]:
        return await self._fetch_one(select(AccountModel).where(AccountModel.email == email))

    async def find_by_id(self, account_id: UUID) -> Optional[Account]:
        return await self._fetch_one(select(AccountModel).where(AccountModel.id == account_id))

    async def find_by_status(self, status: AccountStatus) -> List[Account]:
        result = await self.session.execute(
            select(AccountModel).where(AccountModel.status == status.value)
        )
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def exists_by_email(self, email: str) -> bool:
        result = await self.session.execute(select(exists().where(AccountModel.email == email)))
        return bool(result.scalar())

    async def exists_by_nickname(self, nickname: str) -> bool:
        result = await self.session.execute(select(exists().where(AccountModel.nickname == nickname)))
        return bool(result.scalar())

    async def save(self, account: Account) -> Account:
        """
        Insert or update an account

        Args:
            account: Account entity; its id decides insert vs update

        Returns:
            The saved account
        """
        try:
            model = await self.session.get(AccountModel, account.id)
            if model is None:
                model = AccountModel(id=account.id)
                self.session.add(model)
            self._apply_entity(model, account)

            await self.session.commit()

            logger.debug(
                "Account saved",
                extra={"account_id": str(account.id), "status": account.status.value}
            )
            return account

        except Exception as e:
            await self.session.rollback()
            logger.error(
                "Failed to save account",
                extra={
                    "account_id": str(account.id),
                    "error": str(e)
                }
            )
            raise

    async def delete(self, account_id: UUID) -> None:
        try:
            await self.session.execute(delete(AccountModel).where(AccountModel.id == account_id))
            await self.session.commit()

            logger.info(
                "Account erased",
                extra={"account_id": str(account_id)}
            )

        except Exception as e:
            await self.session.rollback()
            logger.error(
                "Failed to erase account",
                extra={
                    "account_id": str(account_id),
                    "error": str(e)
                }
            )
            raise
