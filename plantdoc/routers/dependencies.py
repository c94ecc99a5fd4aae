from fastapi import HTTPException, Request

from plantdoc.errors import (
    AnalysisInProgressError,
    CameraPermissionError,
    CapacityError,
    InferenceError,
    InputValidationError,
    PlantDocError,
)
from plantdoc.services.analyzer import AnalyzerSession
from plantdoc.services.sessions import SESSION_KEY, session_store

STATUS_CODES = {
    InputValidationError: 422,
    InferenceError: 502,
    CameraPermissionError: 403,
    CapacityError: 413,
    AnalysisInProgressError: 409,
}


def get_analyzer_session(request: Request) -> AnalyzerSession:
    """AnalyzerSession bound to the caller's session cookie"""
    session_id, session = session_store.get_or_create(request.session.get(SESSION_KEY))
    request.session[SESSION_KEY] = session_id
    return session


def to_http_exception(error: PlantDocError) -> HTTPException:
    status_code = STATUS_CODES.get(type(error), 500)
    return HTTPException(
        status_code=status_code,
        detail={"title": error.title, "message": error.notice, "error": str(error)},
    )
