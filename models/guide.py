from typing import List

from pydantic import BaseModel, Field


class GuideContent(BaseModel):
    overview: str
    what_to_do: List[str] = Field(default_factory=list)
    what_not_to_say: List[str] = Field(default_factory=list)
    specific_rights: List[str] = Field(default_factory=list)


class Guide(BaseModel):
    guide_id: str
    state: str
    title: str
    content: GuideContent
    language: str = "en"
