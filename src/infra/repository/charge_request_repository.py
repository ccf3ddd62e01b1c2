"""
Charge request audit repository using SQLAlchemy ORM
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.service.account.interfaces import ChargeRequestRepository
from src.core.service.charge.models import ChargeRequest
from src.infra.models import ChargeRequestModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class SqlChargeRequestRepository(ChargeRequestRepository):
    """Repository for accepted charge requests"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, charge: ChargeRequest) -> None:
        try:
            self.session.add(ChargeRequestModel(
                id=charge.id,
                owner_id=charge.owner_id,
                amount=charge.amount,
                message=charge.message,
                created_at=charge.created_at
            ))
            await self.session.commit()

        except Exception as e:
            await self.session.rollback()
            logger.error(
                "Failed to record charge request",
                extra={
                    "charge_id": str(charge.id),
                    "owner_id": str(charge.owner_id),
                    "error": str(e)
                }
            )
            raise
