"""Server-rendered UI: upload tab, history table, detail and delete pages.

Every page talks to the JSON API through the app's ``ApiClient`` so the UI
sees exactly what an external client would.
"""

import logging
from pathlib import Path
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.datastructures import UploadFile

from resume_analyzer.config import Settings
from resume_analyzer.dependencies import get_app_settings
from resume_analyzer.ui.api_client import ApiClient, ApiError
from resume_analyzer.ui.table import (
    PAGE_SIZES,
    SORT_KEYS,
    ResumeRow,
    TableState,
    format_average,
    next_sort,
    pretty_bytes,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ui", tags=["ui"], include_in_schema=False)

templates = Jinja2Templates(directory=Path(__file__).resolve().parent.parent / "templates")
templates.env.filters["pretty_bytes"] = pretty_bytes

ALLOWED_EXTENSIONS = (".pdf",)
ALLOWED_CONTENT_TYPES = ("application/pdf",)
OFFLINE_MESSAGE = (
    "The server is offline. Uploads and history are unavailable until the "
    "connection is restored."
)


def get_api_client(request: Request) -> ApiClient:
    return request.app.state.api_client


async def _page_context(request: Request, api: ApiClient, tab: str) -> dict:
    """Context shared by every page: connectivity and the stats header."""
    online = await api.is_reachable()
    stats = None
    if online:
        try:
            stats = await api.get_stats()
        except ApiError as e:
            logger.warning(f"Stats unavailable: {e.message}")
    return {
        "tab": tab,
        "online": online,
        "offline_message": OFFLINE_MESSAGE,
        "stats": stats,
        "average_rating": format_average(stats),
        "retry_url": str(request.url),
    }


def _history_url(state: TableState, **overrides) -> str:
    params = {
        "tab": "history",
        "q": state.query,
        "rating": state.band or "",
        "sort": state.sort_key,
        "dir": state.sort_direction or "none",
        "page": state.page,
        "page_size": state.page_size,
    }
    params.update(overrides)
    return "/ui?" + urlencode({k: v for k, v in params.items() if v not in ("", None)})


def _sort_links(state: TableState) -> dict[str, str]:
    links = {}
    for key in SORT_KEYS:
        sort_key, direction = next_sort(state.sort_key, state.sort_direction, key)
        links[key] = _history_url(state, sort=sort_key, dir=direction or "none", page=1)
    return links


def _upload_problem(upload: UploadFile | None, max_bytes: int, size: int) -> str | None:
    """Allow-list and size checks done before the file reaches the API."""
    if upload is None or not upload.filename:
        return "Please select a PDF file."
    name = upload.filename.lower()
    if not name.endswith(ALLOWED_EXTENSIONS) and upload.content_type not in ALLOWED_CONTENT_TYPES:
        return "Only PDF files are allowed."
    if size > max_bytes:
        return f"File too large ({pretty_bytes(size)}). Maximum size is {pretty_bytes(max_bytes)}."
    if size == 0:
        return "Empty file selected. Please select a valid PDF file."
    return None


@router.get("", response_class=HTMLResponse)
async def index(
    request: Request,
    tab: str = "upload",
    q: str = "",
    rating: str = "",
    sort: str = "uploaded_at",
    direction: str = Query("desc", alias="dir"),
    page: int = 1,
    page_size: int | None = None,
    api: ApiClient = Depends(get_api_client),
    settings: Settings = Depends(get_app_settings),
):
    tab = tab if tab in ("upload", "history") else "upload"
    context = await _page_context(request, api, tab)
    context["max_upload_bytes"] = settings.max_upload_bytes

    if tab == "history" and context["online"]:
        state = TableState(
            query=q,
            band=rating or None,
            sort_key=sort if sort in SORT_KEYS else "uploaded_at",
            sort_direction=direction if direction in ("asc", "desc") else None,
            page=page,
            page_size=page_size or settings.ui_page_size,
        )
        try:
            summaries = await api.list_resumes()
            result = state.apply([ResumeRow.from_summary(s) for s in summaries])
            state.page, state.page_size = result.page, result.page_size
            context.update(
                page=result,
                state=state,
                sort_links=_sort_links(state),
                page_url=lambda n: _history_url(state, page=n),
                size_url=lambda size: _history_url(state, page_size=size, page=1),
                page_sizes=PAGE_SIZES,
            )
        except ApiError as e:
            context["error"] = e.message

    return templates.TemplateResponse(request, "index.html", context)


@router.post("/upload", response_class=HTMLResponse)
async def upload(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    settings: Settings = Depends(get_app_settings),
):
    context = await _page_context(request, api, "upload")
    context["max_upload_bytes"] = settings.max_upload_bytes

    status_code = 200
    form = await request.form()
    try:
        upload_file = form.get("resume")
        if not isinstance(upload_file, UploadFile):
            upload_file = None
        data = await upload_file.read(settings.max_upload_bytes + 1) if upload_file else b""
        problem = _upload_problem(upload_file, settings.max_upload_bytes, len(data))
        if problem:
            context["upload_error"] = problem
            status_code = 400
        else:
            try:
                record = await api.upload_resume(
                    upload_file.filename,
                    data,
                    ALLOWED_CONTENT_TYPES[0],
                )
                context["uploaded"] = record
                context["stats"] = await api.get_stats()
                context["average_rating"] = format_average(context["stats"])
            except ApiError as e:
                context["upload_error"] = e.message
                status_code = e.status_code
    finally:
        await form.close()
    return templates.TemplateResponse(request, "index.html", context, status_code=status_code)


@router.get("/resumes/{resume_id}", response_class=HTMLResponse)
async def resume_detail(
    request: Request,
    resume_id: str,
    api: ApiClient = Depends(get_api_client),
):
    context = await _page_context(request, api, "history")
    status_code = 200
    try:
        context["resume"] = await api.get_resume(resume_id)
    except ApiError as e:
        context["error"] = e.message
        status_code = e.status_code
    return templates.TemplateResponse(request, "detail.html", context, status_code=status_code)


@router.get("/resumes/{resume_id}/delete", response_class=HTMLResponse)
async def confirm_delete(
    request: Request,
    resume_id: str,
    api: ApiClient = Depends(get_api_client),
):
    context = await _page_context(request, api, "history")
    status_code = 200
    try:
        context["resume"] = await api.get_resume(resume_id)
    except ApiError as e:
        context["error"] = e.message
        status_code = e.status_code
    return templates.TemplateResponse(
        request, "confirm_delete.html", context, status_code=status_code
    )


@router.post("/resumes/{resume_id}/delete")
async def delete(
    request: Request,
    resume_id: str,
    api: ApiClient = Depends(get_api_client),
):
    try:
        message = await api.delete_resume(resume_id)
    except ApiError as e:
        context = await _page_context(request, api, "history")
        context["error"] = e.message
        context["resume"] = {"id": resume_id, "file_name": None}
        return templates.TemplateResponse(
            request, "confirm_delete.html", context, status_code=e.status_code
        )
    logger.info(message)
    return RedirectResponse("/ui?tab=history", status_code=303)
