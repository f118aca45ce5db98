"""
Guide Service - state-specific "know your rights" guidance.

GuideRepository is the built-in content: a total lookup where unknown
jurisdictions get the default (California) guide. GuideService asks the
guidance-content collaborator first and falls back to the repository.
"""

import logging
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from crud.legal_guide import LegalGuideRepository
from models.guide import Guide, GuideContent
from utils.security_utils import normalize_language

logger = logging.getLogger(__name__)

DEFAULT_JURISDICTION = "CA"

JURISDICTIONS = {
    "CA": "California",
    "NY": "New York",
    "TX": "Texas",
    "FL": "Florida",
    "IL": "Illinois",
    "PA": "Pennsylvania",
    "OH": "Ohio",
    "GA": "Georgia",
    "NC": "North Carolina",
    "MI": "Michigan",
}

STATIC_GUIDES: Dict[str, Guide] = {
    "CA": Guide(
        guide_id="1",
        state="CA",
        title="California - Know Your Rights",
        content=GuideContent(
            overview="In California, you have specific rights during police interactions.",
            what_to_do=[
                "Remain calm and polite",
                "Keep your hands visible",
                'Ask "Am I free to leave?"',
                "Request a lawyer if arrested",
                "Do not consent to searches",
            ],
            what_not_to_say=[
                "Do not admit guilt",
                "Do not lie to officers",
                "Do not argue or resist",
                "Do not provide information beyond required ID",
            ],
            specific_rights=[
                "Right to remain silent (Miranda Rights)",
                "Right to refuse consent to search vehicle/person",
                "Right to ask if you are being detained",
                "Right to record police interactions in public",
            ],
        ),
        language="en",
    ),
    "NY": Guide(
        guide_id="2",
        state="NY",
        title="New York - Know Your Rights",
        content=GuideContent(
            overview="In New York, you have constitutional rights during police encounters.",
            what_to_do=[
                "Stay calm and respectful",
                "Keep hands where officers can see them",
                "Ask if you are free to leave",
                "Invoke your right to remain silent",
                "Request an attorney",
            ],
            what_not_to_say=[
                "Never admit to any wrongdoing",
                "Do not lie or provide false information",
                "Avoid arguing with officers",
                "Do not volunteer information",
            ],
            specific_rights=[
                "Right to remain silent under 5th Amendment",
                "Right to refuse searches without warrant",
                "Right to know reason for detention",
                "Right to legal representation",
            ],
        ),
        language="en",
    ),
}


def is_known_jurisdiction(code: Optional[str]) -> bool:
    return bool(code) and code.upper() in JURISDICTIONS


class GuideRepository:
    """Built-in guides. lookup() never fails."""

    def __init__(self, guides: Optional[Dict[str, Guide]] = None, default_code: str = DEFAULT_JURISDICTION):
        self.guides = guides if guides is not None else STATIC_GUIDES
        self.default_code = default_code

    def lookup(self, code: Optional[str]) -> Guide:
        key = (code or "").strip().upper()
        return self.guides.get(key) or self.guides[self.default_code]


class GuideContentProvider:
    """Guidance-content collaborator contract"""

    async def fetch_guide(self, jurisdiction: str, language: str) -> Optional[Guide]:
        raise NotImplementedError


class DatabaseGuideContent(GuideContentProvider):

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def fetch_guide(self, jurisdiction: str, language: str) -> Optional[Guide]:
        async with self.session_factory() as db:
            row = await LegalGuideRepository(db).get_guide(jurisdiction, language)
        if row is None:
            return None
        return Guide(
            guide_id=str(row.id),
            state=row.state,
            title=row.title,
            content=GuideContent(**row.content),
            language=row.language,
        )


class GuideService:

    def __init__(self, repository: Optional[GuideRepository] = None, content: Optional[GuideContentProvider] = None):
        self.repository = repository or GuideRepository()
        self.content = content

    async def get_guide(self, code: str, language: str = "en") -> Guide:
        language = normalize_language(language)
        if self.content is not None and is_known_jurisdiction(code):
            try:
                guide = await self.content.fetch_guide(code.upper(), language)
                if guide is not None:
                    return guide
            except Exception as e:
                logger.error(f"Error loading guide for {code}/{language}: {e}")
        return self.repository.lookup(code)

    @staticmethod
    def list_jurisdictions():
        return [{"code": code, "name": name} for code, name in JURISDICTIONS.items()]
