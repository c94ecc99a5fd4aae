import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Request, UploadFile

from plantdoc.errors import AnalysisInProgressError, CapacityError, PlantDocError
from plantdoc.models import (
    AnalysisResult,
    AnalyzeRequest,
    DiseaseDetectionResponse,
    SpeciesIdentificationResponse,
    TreatmentResponse,
)
from plantdoc.routers.dependencies import get_analyzer_session, to_http_exception
from plantdoc.services.acquisition import FileUpload
from plantdoc.services.analyzer import AnalyzerSession
from plantdoc.services.flows import (
    detect_disease_flow,
    identify_species_flow,
    recommend_treatment_flow,
)
from plantdoc.utils.rate_limiter import analyze_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ============================================================================#
# Analyzer session
# ============================================================================#

@router.get("/session", response_model=AnalysisResult)
async def get_session(session: AnalyzerSession = Depends(get_analyzer_session)):
    return session.snapshot()


@router.post("/upload", response_model=AnalysisResult)
async def upload_image(
    file: UploadFile = File(...),
    session: AnalyzerSession = Depends(get_analyzer_session),
):
    try:
        await FileUpload(session).load(file)
    except CapacityError as e:
        logger.warning(f"Upload rejected: {e}")
        session.drain_notices()
        raise to_http_exception(e)
    finally:
        await file.close()
    return session.snapshot()


@router.post("/analyze", response_model=AnalysisResult)
@analyze_limit
async def analyze_image(
    request: Request,
    payload: Optional[AnalyzeRequest] = Body(None),
    session: AnalyzerSession = Depends(get_analyzer_session),
):
    image = payload.photo_data_uri if payload else None
    try:
        return await session.analyze(image)
    except AnalysisInProgressError as e:
        raise to_http_exception(e)


@router.post("/retake", response_model=AnalysisResult)
async def retake_image(session: AnalyzerSession = Depends(get_analyzer_session)):
    session.clear_candidate_image()
    return session.snapshot()


# ============================================================================#
# Direct flow invocation
# ============================================================================#

async def _run_flow(flow, payload: Dict[str, Any]):
    try:
        return await flow.run(payload)
    except PlantDocError as e:
        logger.error(f"{flow.name} failed: {e}")
        raise to_http_exception(e)


@router.post("/flows/identify-species", response_model=SpeciesIdentificationResponse)
@analyze_limit
async def identify_species(request: Request, payload: Dict[str, Any] = Body(...)):
    return await _run_flow(identify_species_flow, payload)


@router.post("/flows/detect-disease", response_model=DiseaseDetectionResponse)
@analyze_limit
async def detect_disease(request: Request, payload: Dict[str, Any] = Body(...)):
    return await _run_flow(detect_disease_flow, payload)


@router.post("/flows/recommend-treatment", response_model=TreatmentResponse)
@analyze_limit
async def recommend_treatment(request: Request, payload: Dict[str, Any] = Body(...)):
    return await _run_flow(recommend_treatment_flow, payload)
