import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from app.api.routes_assessment import router as assessment_router
from app.api.routes_booking import router as booking_router
from app.api.routes_doctor import admin_router as doctor_admin_router
from app.api.routes_doctor import router as doctor_router
from app.api.routes_screening import router as screening_router
from app.core.config import settings
from app.db.session import init_db
from app.services.screening import DISCLAIMER_TEXT

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    await init_db()
    logger.info("%s started", settings.app_name)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(assessment_router)
app.include_router(screening_router)
app.include_router(doctor_router)
app.include_router(doctor_admin_router)
app.include_router(booking_router)


class RootResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    message: str
    disclaimer: str


@app.get("/", response_model=RootResponse)
async def root() -> RootResponse:
    # Request Example:
    # GET /
    #
    # Response Example:
    # 200
    # {"message":"Neurona Care API","disclaimer":"This screening is for reference only and is not a diagnosis."}
    return RootResponse(message=settings.app_name, disclaimer=DISCLAIMER_TEXT)
