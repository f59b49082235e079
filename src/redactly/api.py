"""FastAPI service exposing a single Redactly review session.

The service is the presentation boundary of the pipeline:

* Pydantic models from ``redactly.types`` are the response schema.
* One in-memory :class:`RedactionSession` holds the current document, its
  redaction result and review state; a new upload replaces all of it.
* Swagger UI (``/docs``) and ReDoc (``/redoc``) document every endpoint.

Run locally::

    uvicorn redactly.api:app --host 127.0.0.1 --port 8000

Or via the CLI::

    redactly api --host 127.0.0.1 --port 8000
"""

from __future__ import annotations

import json
from typing import Dict, List, Literal, Optional

from fastapi import (
    APIRouter,
    Depends,
    FastAPI,
    File,
    Form,
    HTTPException,
    Request,
    Security,
    UploadFile,
    status,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError

from .errors import (
    ExtractionFailed,
    InvalidAnnotation,
    NoDocument,
    RedactlyError,
    UnknownCandidate,
    UnsupportedKind,
)
from .extract import infer_kind
from .health import run_readiness_checks
from .logging import get_logger
from .pipeline import RedactionSession, RunConfig
from .settings import ServiceSettings, get_settings
from .types import ProcessedDocument, RedactionCandidate, RedactionOptions

settings: ServiceSettings = get_settings()
logger = get_logger(__name__)

auth_scheme = HTTPBearer(auto_error=False)


class ResultView(BaseModel):
    """Current redaction result with live review state."""

    candidates: List[RedactionCandidate]
    redacted_text: str
    options: Optional[RedactionOptions] = None
    summary: Dict[str, int]


class DocumentView(BaseModel):
    document: ProcessedDocument
    result: ResultView


class AnnotationCreate(BaseModel):
    text: str


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class ReadinessCheckModel(BaseModel):
    name: str
    status: Literal["pass", "warn", "fail"]
    detail: Optional[str] = None
    required: bool


class ReadyResponse(BaseModel):
    ready: bool
    checks: List[ReadinessCheckModel]


_session = RedactionSession(RunConfig.from_settings(settings))


def get_session() -> RedactionSession:
    return _session


app = FastAPI(
    title="Redactly API",
    description="Review-session service built on top of the Redactly pipeline.",
    version="0.1.0",
    openapi_tags=[
        {"name": "health", "description": "Service health and readiness probes."},
        {"name": "document", "description": "Upload and re-run redaction on the current document."},
        {"name": "review", "description": "Approve, reject and annotate redaction candidates."},
    ],
)

if settings.cors_origins:
    allow_origins = ["*"] if "*" in settings.cors_origins else settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

_ERROR_STATUS = {
    UnsupportedKind: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    ExtractionFailed: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidAnnotation: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NoDocument: status.HTTP_409_CONFLICT,
    UnknownCandidate: status.HTTP_404_NOT_FOUND,
}


@app.exception_handler(RedactlyError)
async def _redactly_error(request: Request, exc: RedactlyError) -> JSONResponse:
    code = _ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.info("request failed", extra={"path": request.url.path, "error": type(exc).__name__})
    return JSONResponse(status_code=code, content={"detail": str(exc), "error": type(exc).__name__})


health_router = APIRouter(tags=["health"])
document_router = APIRouter(tags=["document"])
review_router = APIRouter(tags=["review"])


def require_auth(
    credentials: HTTPAuthorizationCredentials = Security(auth_scheme),
) -> None:
    """Simple bearer-token protection."""

    token = settings.api_token
    if token is None:
        return
    if credentials is None or credentials.credentials != token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


def _result_view(session: RedactionSession) -> ResultView:
    result = session.result
    if result is None:
        raise NoDocument("No redaction result available; upload a document first.")
    review = session.review
    return ResultView(
        candidates=review.candidates(),
        redacted_text=result.redacted_text,
        options=result.options,
        summary=review.summary(),
    )


def _parse_options(raw: Optional[str]) -> RedactionOptions:
    raw_options = (raw or "").strip()
    if not raw_options or raw_options.lower() in {"null", "none", "string"}:
        return RedactionOptions()
    try:
        return RedactionOptions.model_validate_json(raw_options)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=json.loads(exc.json()),
        ) from exc


@health_router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse()


@health_router.get("/livez", response_model=HealthResponse)
def livez() -> HealthResponse:
    return HealthResponse(status="ok")


@health_router.get("/readyz", response_model=ReadyResponse)
def readyz():
    checks = run_readiness_checks(settings)
    ready = True
    payload: List[ReadinessCheckModel] = []
    for check in checks:
        payload.append(
            ReadinessCheckModel(
                name=check.name,
                status=check.status,
                detail=check.detail,
                required=check.required,
            )
        )
        if check.required and check.status == "fail":
            ready = False
        if (
            check.required
            and check.status == "warn"
            and not settings.allowance_warn_only_checks
        ):
            ready = False
    response = ReadyResponse(ready=ready, checks=payload)
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=response.model_dump())


@document_router.post("/document", response_model=DocumentView, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    options: Optional[str] = Form(
        None,
        description="JSON-encoded redaction options",
        examples=['{"sensitivity_level": 70, "redact_dates": false}'],
    ),
    auth: None = Depends(require_auth),
    session: RedactionSession = Depends(get_session),
) -> DocumentView:
    parsed_options = _parse_options(options)
    kind = infer_kind(file.filename, file.content_type)
    data = await file.read()
    result = await session.run(data, kind, parsed_options)
    # A newer upload or options change replaces the published result
    if session.result is not result or session.document is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Superseded by a newer request"
        )
    return DocumentView(document=session.document, result=_result_view(session))


@document_router.get("/document", response_model=ProcessedDocument)
def get_document(
    auth: None = Depends(require_auth),
    session: RedactionSession = Depends(get_session),
) -> ProcessedDocument:
    if session.document is None:
        raise NoDocument("No document processed yet.")
    return session.document


@document_router.get("/redactions", response_model=ResultView)
def get_redactions(
    auth: None = Depends(require_auth),
    session: RedactionSession = Depends(get_session),
) -> ResultView:
    return _result_view(session)


@document_router.put("/redactions", response_model=ResultView)
async def update_redactions(
    options: RedactionOptions,
    auth: None = Depends(require_auth),
    session: RedactionSession = Depends(get_session),
) -> ResultView:
    await session.apply_options(options)
    return _result_view(session)


@review_router.get("/candidates/{candidate_id}", response_model=RedactionCandidate)
def select_candidate(
    candidate_id: str,
    auth: None = Depends(require_auth),
    session: RedactionSession = Depends(get_session),
) -> RedactionCandidate:
    selected = session.select(candidate_id)
    if selected is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No such candidate")
    return selected


@review_router.post("/candidates/{candidate_id}/approve", response_model=RedactionCandidate)
def approve_candidate(
    candidate_id: str,
    auth: None = Depends(require_auth),
    session: RedactionSession = Depends(get_session),
) -> RedactionCandidate:
    return session.approve(candidate_id)


@review_router.post("/candidates/{candidate_id}/reject", response_model=RedactionCandidate)
def reject_candidate(
    candidate_id: str,
    auth: None = Depends(require_auth),
    session: RedactionSession = Depends(get_session),
) -> RedactionCandidate:
    return session.reject(candidate_id)


@review_router.post(
    "/candidates/{candidate_id}/annotations",
    response_model=RedactionCandidate,
    status_code=status.HTTP_201_CREATED,
)
def annotate_candidate(
    candidate_id: str,
    payload: AnnotationCreate,
    auth: None = Depends(require_auth),
    session: RedactionSession = Depends(get_session),
) -> RedactionCandidate:
    return session.annotate(candidate_id, payload.text)


@review_router.get("/review/summary", response_model=Dict[str, int])
def review_summary(
    auth: None = Depends(require_auth),
    session: RedactionSession = Depends(get_session),
) -> Dict[str, int]:
    return session.review.summary()


app.include_router(health_router)
app.include_router(document_router)
app.include_router(review_router)


def run(
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """Launch the API server via ``uvicorn``.

    A single worker is used: the review session lives in process memory.
    """

    import uvicorn

    uvicorn.run(
        "redactly.api:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        workers=1,
        log_level=log_level,
    )
