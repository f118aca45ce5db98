"""
InteractionRecordRepository for archived recording sessions
"""

from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import InteractionRecord


class InteractionRecordRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_record(self, user_id: int, record_data: dict) -> InteractionRecord:
        record = InteractionRecord(user_id=user_id, **record_data)
        self.db.add(record)
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def get_user_records(self, user_id: int, limit: int = 10) -> List[InteractionRecord]:
        """Most recent records first"""
        result = await self.db.execute(
            select(InteractionRecord)
            .where(InteractionRecord.user_id == user_id)
            .order_by(InteractionRecord.created_at.desc(), InteractionRecord.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
