from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.db.models import AssessmentRecord, AssessmentType
from app.db.session import get_db
from app.schemas.assessment import (
    AssessmentHistoryItem,
    AssessmentRecordCreateRequest,
    AssessmentRecordOut,
    CategoryName,
    TrendSummaryResponse,
)
from app.services.trend_analysis import (
    AssessmentPoint,
    TimeRange,
    analyze_trend,
    as_utc,
    filter_by_time_range,
    risk_band,
    score_for_category,
)

router = APIRouter(prefix="/patients/{patient_id}", tags=["assessment"])


def _to_point(row: AssessmentRecord) -> AssessmentPoint:
    return AssessmentPoint(
        assessed_at=row.assessed_at,
        overall_score=float(row.overall_score),
        categories={name: float(value) for name, value in (row.categories or {}).items()},
    )


def _record_fields(row: AssessmentRecord) -> dict:
    return {
        "id": row.id,
        "patient_id": row.patient_id,
        "assessed_at": row.assessed_at,
        "overall_score": float(row.overall_score),
        "categories": {name: float(value) for name, value in (row.categories or {}).items()},
        "assessment_type": row.assessment_type.value,
        "notes": row.notes,
        "treatment_changes": list(row.treatment_changes or []),
        "created_at": row.created_at,
    }


@router.post("/assessments", response_model=AssessmentRecordOut, status_code=status.HTTP_201_CREATED)
async def create_assessment_record(
    payload: AssessmentRecordCreateRequest,
    patient_id: str,
    db: AsyncSession = Depends(get_db),
) -> AssessmentRecordOut:
    # Request Example:
    # POST /patients/p-001/assessments
    # {"assessed_at":"2024-01-15T09:00:00Z","overall_score":72,"assessment_type":"intake",
    #  "categories":{"depression":75,"anxiety":68,"suicide_risk":80,"substance_abuse":45,"trauma":50}}
    #
    # Response Example:
    # 201
    # {"id":"...","patient_id":"p-001","overall_score":72.0,"assessment_type":"intake",...}
    row = await crud.create_assessment_record(
        db,
        patient_id=patient_id,
        assessed_at=as_utc(payload.assessed_at) if payload.assessed_at else datetime.now(timezone.utc),
        overall_score=payload.overall_score,
        categories=payload.categories.model_dump(),
        assessment_type=AssessmentType(payload.assessment_type),
        notes=payload.notes,
        treatment_changes=list(payload.treatment_changes),
    )
    return AssessmentRecordOut(**_record_fields(row))


@router.get("/assessments", response_model=list[AssessmentHistoryItem])
async def list_assessment_history(
    patient_id: str,
    time_range: TimeRange | None = Query(default=None),
    category: CategoryName = Query(default="overall"),
    db: AsyncSession = Depends(get_db),
) -> list[AssessmentHistoryItem]:
    # Request Example:
    # GET /patients/p-001/assessments?time_range=3m&category=depression
    #
    # Response Example:
    # 200
    # [{"id":"...","overall_score":72.0,...,"score":75.0,"risk_band":"high"}]
    rows = await crud.list_assessment_records(db, patient_id)
    if time_range is not None:
        rows = filter_by_time_range(rows, time_range, datetime.now(timezone.utc))

    out: list[AssessmentHistoryItem] = []
    for row in rows:
        score = score_for_category(_to_point(row), category)
        out.append(AssessmentHistoryItem(**_record_fields(row), score=score, risk_band=risk_band(score)))
    return out


@router.get("/assessments/{record_id}", response_model=AssessmentRecordOut)
async def get_assessment_record(
    record_id: UUID,
    patient_id: str,
    db: AsyncSession = Depends(get_db),
) -> AssessmentRecordOut:
    row = await crud.get_assessment_record(db, patient_id, record_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found")
    return AssessmentRecordOut(**_record_fields(row))


@router.get("/trend", response_model=TrendSummaryResponse)
async def get_trend_summary(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
) -> TrendSummaryResponse:
    # Request Example:
    # GET /patients/p-001/trend
    #
    # Response Example:
    # 200
    # {"patient_id":"p-001","direction":"improving","percentage":15.56,"overall_change":47.22,
    #  "significant_changes":[],"recommendations":["Continue current treatment plan",...],
    #  "assessment_count":6,"latest_score":38.0,"latest_risk_band":"moderate"}
    rows = await crud.list_assessment_records(db, patient_id)
    history = [_to_point(row) for row in rows]
    summary = analyze_trend(history)
    latest_score = history[-1].overall_score if history else None
    return TrendSummaryResponse(
        patient_id=patient_id,
        assessment_count=len(history),
        latest_score=latest_score,
        latest_risk_band=risk_band(latest_score) if latest_score is not None else None,
        **summary,
    )
