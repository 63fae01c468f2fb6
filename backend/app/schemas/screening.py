from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, conint

LikertScore = conint(ge=0, le=3)
SeverityName = Literal["normal", "moderate", "moderate-severe", "severe"]
TriageName = Literal["monitor", "therapist", "therapist_psychiatrist", "psychiatrist_crisis"]


class ShortQuestionnaireAnswers(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    q1_sadness: LikertScore
    q2_anxiety: LikertScore
    q3_concentration: LikertScore
    q4_lost_interest: LikertScore
    q5_sleep: LikertScore
    q6_fatigue: LikertScore
    q7_social_anxiety: LikertScore
    q8_irritability: LikertScore
    q9_digital_escape: LikertScore
    q10_suicidal_thoughts: LikertScore


class DeepScreeningAnswers(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    depression_q1_sadness: LikertScore
    depression_q2_anhedonia: LikertScore
    depression_q3_sleep_energy: LikertScore
    depression_q4_suicidal_thoughts: LikertScore
    anxiety_q5_nervousness: LikertScore
    anxiety_q6_excessive_worry: LikertScore
    anxiety_q7_restlessness: LikertScore
    suicide_q8_passive_thoughts: LikertScore
    suicide_q9_active_thoughts: LikertScore
    mania_q10_elevated_mood: LikertScore
    mania_q11_decreased_sleep: LikertScore
    psychosis_q12_hallucinations: LikertScore
    psychosis_q13_paranoia: LikertScore
    substance_q14_alcohol_tobacco: LikertScore
    substance_q15_drugs: LikertScore
    functioning_q16_impairment: LikertScore
    sleep_q17_hours: LikertScore


class ShortScreeningRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    answers: ShortQuestionnaireAnswers


class DeepScreeningRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    answers: DeepScreeningAnswers
    short_answers: ShortQuestionnaireAnswers | None = None


class ShortScoreOut(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    total: int
    severity: SeverityName
    needs_deep_screening: bool
    auto_flags: list[str]


class DeepScoreOut(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    total: int
    severity: SeverityName
    domain_scores: dict[str, int]
    risk_flags: list[str]


class TriageOut(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    triage: TriageName
    recommendations: list[str]
    urgent_flags: list[str]


class PatientSummaryOut(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    message: str
    activities: list[str]
    next_steps: str
    disclaimer: str


class ScreeningResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    short: ShortScoreOut | None = None
    deep: DeepScoreOut | None = None
    triage: TriageOut
    summary: PatientSummaryOut
    disclaimer: str = Field(default="This screening is for reference only and is not a diagnosis.")


class DoctorReportRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    short_answers: ShortQuestionnaireAnswers | None = None
    deep_answers: DeepScreeningAnswers | None = None


class DoctorReportResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    short: ShortScoreOut | None = None
    deep: DeepScoreOut | None = None
    symptoms: list[str]
    interpretation: str
    differentials: list[str]
    key_questions: list[str]
    triage: TriageOut
