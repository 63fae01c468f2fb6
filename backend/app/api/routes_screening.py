from fastapi import APIRouter, HTTPException, status

from app.schemas.screening import (
    DeepScoreOut,
    DeepScreeningRequest,
    DoctorReportRequest,
    DoctorReportResponse,
    PatientSummaryOut,
    ScreeningResponse,
    ShortScoreOut,
    ShortScreeningRequest,
    TriageOut,
)
from app.services.screening import (
    DISCLAIMER_TEXT,
    doctor_report,
    patient_summary,
    score_deep_screening,
    score_short_questionnaire,
    triage,
)

router = APIRouter(prefix="/screenings", tags=["screening"])


@router.post("/short", response_model=ScreeningResponse)
async def score_short_screening(payload: ShortScreeningRequest) -> ScreeningResponse:
    # Request Example:
    # POST /screenings/short
    # {"answers":{"q1_sadness":1,"q2_anxiety":2,"q3_concentration":1,"q4_lost_interest":1,"q5_sleep":1,
    #  "q6_fatigue":1,"q7_social_anxiety":0,"q8_irritability":1,"q9_digital_escape":1,"q10_suicidal_thoughts":0}}
    #
    # Response Example:
    # 200
    # {"short":{"total":9,"severity":"moderate","needs_deep_screening":true,"auto_flags":[]},
    #  "triage":{"triage":"therapist",...},"summary":{...},"disclaimer":"..."}
    try:
        short = score_short_questionnaire(payload.answers.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    result = triage(short)
    return ScreeningResponse(
        short=ShortScoreOut(**short),
        triage=TriageOut(**result),
        summary=PatientSummaryOut(**patient_summary(result["triage"])),
        disclaimer=DISCLAIMER_TEXT,
    )


@router.post("/deep", response_model=ScreeningResponse)
async def score_deep_screening_route(payload: DeepScreeningRequest) -> ScreeningResponse:
    try:
        deep = score_deep_screening(payload.answers.model_dump())
        short = score_short_questionnaire(payload.short_answers.model_dump()) if payload.short_answers else None
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    result = triage(short, deep)
    return ScreeningResponse(
        short=ShortScoreOut(**short) if short else None,
        deep=DeepScoreOut(**deep),
        triage=TriageOut(**result),
        summary=PatientSummaryOut(**patient_summary(result["triage"])),
        disclaimer=DISCLAIMER_TEXT,
    )


@router.post("/report", response_model=DoctorReportResponse)
async def build_doctor_report(payload: DoctorReportRequest) -> DoctorReportResponse:
    # Request Example:
    # POST /screenings/report
    # {"short_answers":{"q1_sadness":2,...},"deep_answers":{"depression_q1_sadness":3,...}}
    #
    # Response Example:
    # 200
    # {"symptoms":["low mood"],"interpretation":"Pattern suggests mild distress, likely situational",
    #  "differentials":["Major Depressive Disorder","Adjustment Disorder"],"key_questions":[...],"triage":{...}}
    if payload.short_answers is None and payload.deep_answers is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Provide short_answers, deep_answers or both.",
        )
    try:
        short = score_short_questionnaire(payload.short_answers.model_dump()) if payload.short_answers else None
        deep = score_deep_screening(payload.deep_answers.model_dump()) if payload.deep_answers else None
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    report = doctor_report(short, deep)
    return DoctorReportResponse(
        short=ShortScoreOut(**short) if short else None,
        deep=DeepScoreOut(**deep) if deep else None,
        symptoms=report["symptoms"],
        interpretation=report["interpretation"],
        differentials=report["differentials"],
        key_questions=report["key_questions"],
        triage=TriageOut(**report["triage"]),
    )
