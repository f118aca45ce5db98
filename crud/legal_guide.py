"""
LegalGuideRepository for guidance content stored in the database
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import LegalGuide


class LegalGuideRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_guide(self, state: str, language: str = "en") -> Optional[LegalGuide]:
        result = await self.db.execute(
            select(LegalGuide).where(
                LegalGuide.state == state.upper(),
                LegalGuide.language == language,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_guide(self, state: str, language: str, title: str, content: dict) -> LegalGuide:
        guide = await self.get_guide(state, language)
        if guide is None:
            guide = LegalGuide(state=state.upper(), language=language, title=title, content=content)
            self.db.add(guide)
        else:
            guide.title = title
            guide.content = content
        await self.db.flush()
        await self.db.refresh(guide)
        return guide
