from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_TITLE_CHARS = 200
MAX_DESCRIPTION_CHARS = 5000
MAX_TAGS = 100


class Check(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    passed: bool
    message: str


class FieldAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int
    checks: List[Check]

    @field_validator("score")
    @classmethod
    def clamp_score(cls, v: int) -> int:
        return max(0, min(100, v))


class FullAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: FieldAnalysis
    description: FieldAnalysis
    tags: FieldAnalysis
    overall_score: int
    label: str
    recommendations: List[str]


class AnalysisRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_CHARS)
    description: str = Field("", max_length=MAX_DESCRIPTION_CHARS)
    tags: List[str] = Field(default_factory=list, max_length=MAX_TAGS)

    @field_validator("tags")
    @classmethod
    def drop_blank_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip() for tag in v if tag.strip()]


class ReportOut(BaseModel):
    id: str
    created_at: datetime
    source_url: Optional[str] = None
    title: str
    description: str
    tags: List[str]
    analysis: FullAnalysis
