import logging
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from plantdoc.config import MAX_UPLOAD_BYTES
from plantdoc.models import HistoryLog
from plantdoc.routers.dependencies import get_analyzer_session
from plantdoc.services.analyzer import AnalyzerSession
from plantdoc.services.history import describe_condition, format_history_date, get_history

logger = logging.getLogger(__name__)

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.filters["history_date"] = format_history_date
templates.env.filters["condition"] = describe_condition


@router.get("/", response_class=HTMLResponse)
async def analyzer_page(request: Request, session: AnalyzerSession = Depends(get_analyzer_session)):
    return templates.TemplateResponse(request, "index.html", {
        "image_data_uri": session.image_data_uri,
        "loading": session.loading,
        "cards": session.result_cards(),
        "max_upload_mb": MAX_UPLOAD_BYTES // (1024 * 1024),
    })


@router.get("/history", response_class=HTMLResponse)
async def history_page(request: Request):
    return templates.TemplateResponse(request, "history.html", {"history": get_history()})


@router.get("/api/history", response_model=List[HistoryLog])
async def history_data():
    return get_history()
