import logging
from functools import lru_cache
from typing import Any, Dict, List

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vetdicom import __version__
from vetdicom.config import get_settings
from vetdicom.models import CaseBundle, DicomWebSeries, ErrorResponse
from vetdicom.orthanc import OrthancService
from vetdicom.records import InMemoryRecordStore, RecordStore
from vetdicom.utils import is_valid_study_instance_uid, sanitize_uid_for_logging

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

ENDPOINTS = [
    "GET /api/case-bundle/{studyInstanceUid}",
    "GET /api/orthanc/series/{studyInstanceUid}",
]

app = FastAPI(
    title="Veterinary DICOM API",
    description="Aggregates veterinary patient records with imaging series from Orthanc.",
    version=__version__,
)


def get_orthanc_service() -> OrthancService:
    return OrthancService.from_settings(get_settings())


@lru_cache()
def get_record_store() -> RecordStore:
    return InMemoryRecordStore()


def validate_study_instance_uid(study_instance_uid: str) -> str:
    if not is_valid_study_instance_uid(study_instance_uid):
        raise HTTPException(status_code=400, detail="Invalid StudyInstanceUID format")
    return study_instance_uid


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = str(exc.detail)
    # Starlette raises a bare 404 when no route matches
    if exc.status_code == 404 and detail == "Not Found":
        detail = "Route not found"

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=detail).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Error handling %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal server error").model_dump(),
    )


@app.get("/")
async def root() -> Dict[str, Any]:
    return {"message": "Veterinary DICOM API", "endpoints": ENDPOINTS}


@app.get("/healthz")
async def health() -> Dict[str, str]:
    return {"status": "OK"}


@app.get(
    "/api/case-bundle/{study_instance_uid}",
    response_model=CaseBundle,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_case_bundle(
    study_instance_uid: str = Depends(validate_study_instance_uid),
    record_store: RecordStore = Depends(get_record_store),
    orthanc: OrthancService = Depends(get_orthanc_service),
):
    """Returns the patient case for a study, with series refreshed from Orthanc"""

    case_bundle = record_store.find_by_study_uid(study_instance_uid)
    if case_bundle is None:
        raise HTTPException(status_code=404, detail="Case not found for study UID")

    # Keep the stored series when the archive is unreachable or has none
    series_data = await orthanc.fetch_study_series(study_instance_uid)
    if series_data:
        case_bundle.imaging.series = orthanc.extract_series_uids(series_data)

    return case_bundle


@app.get(
    "/api/orthanc/series/{study_instance_uid}",
    response_model=List[DicomWebSeries],
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def get_study_series(
    study_instance_uid: str = Depends(validate_study_instance_uid),
    orthanc: OrthancService = Depends(get_orthanc_service),
):
    """Returns the series of a study in DICOM JSON format"""

    series_data = await orthanc.fetch_study_series(study_instance_uid)
    if series_data is None:
        logger.error(
            "DICOM fetch failed for study %s", sanitize_uid_for_logging(study_instance_uid)
        )
        raise HTTPException(status_code=503, detail="Unable to fetch from Orthanc")

    return series_data


def run() -> None:
    settings = get_settings()
    logger.info("Server running on http://%s:%s", settings.host, settings.port)
    for endpoint in ENDPOINTS:
        logger.info("  %s", endpoint)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
