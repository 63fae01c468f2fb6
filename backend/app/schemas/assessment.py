from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, confloat, constr

SeverityScore = confloat(ge=0, le=100)
AssessmentTypeName = Literal["intake", "followup", "crisis", "routine"]
CategoryName = Literal["overall", "depression", "anxiety", "suicide_risk", "substance_abuse", "trauma"]


class CategoryScores(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    depression: SeverityScore
    anxiety: SeverityScore
    suicide_risk: SeverityScore
    substance_abuse: SeverityScore
    trauma: SeverityScore


class AssessmentRecordCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    # Defaults to the time of submission.
    assessed_at: datetime | None = Field(default=None, strict=False)
    overall_score: SeverityScore
    categories: CategoryScores
    assessment_type: AssessmentTypeName
    notes: constr(max_length=2000) | None = None
    treatment_changes: list[constr(min_length=1, max_length=200)] = Field(default_factory=list)


class AssessmentRecordOut(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    id: UUID
    patient_id: str
    assessed_at: datetime
    overall_score: float
    categories: dict[str, float]
    assessment_type: AssessmentTypeName
    notes: str | None
    treatment_changes: list[str]
    created_at: datetime


class AssessmentHistoryItem(AssessmentRecordOut):
    score: float
    risk_band: Literal["high", "elevated", "moderate", "low"]


class TrendSummaryResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    patient_id: str
    direction: Literal["improving", "stable", "declining", "critical"]
    percentage: float
    overall_change: float
    significant_changes: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    assessment_count: int
    latest_score: float | None = None
    latest_risk_band: Literal["high", "elevated", "moderate", "low"] | None = None
