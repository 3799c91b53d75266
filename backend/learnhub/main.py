"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the content hub. Controllers
are intentionally thin: they accept requests, delegate to services and
repositories, and return JSON responses. Every error body has the shape
`{"message": ..., "errors": [...]}` where `errors` is only present for
validation failures.

Endpoints implemented:
- GET  /api/concepts
- GET  /api/concepts/category/{category}
- GET  /api/concepts/{slug}
- POST /api/concepts
- GET  /api/theory/{concept_id}
- POST /api/theory
- GET  /api/code/{concept_id}
- POST /api/code
- GET  /api/experiments/{concept_id}
- POST /api/experiments
- GET  /api/papers
- GET  /api/papers/related
- GET  /api/papers/{paper_id}
- POST /api/papers
- POST /api/users
- GET  /health
"""

from contextlib import contextmanager
from typing import List, Optional
from fastapi import FastAPI, Body, Depends, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
import json
import logging
import time
import uuid
from . import services, repositories, schemas
from .config import Settings, settings
from .database import InMemoryDatabase, get_database
from .seed import load_seed_data

logger = logging.getLogger("learnhub.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorOut},
    500: {"model": schemas.ErrorOut},
}


def _error_body(message: str, errors: Optional[list] = None) -> dict:
    return jsonable_encoder(schemas.ErrorOut(message=message, errors=errors), exclude_none=True)


@contextmanager
def _internal_errors(operation: str, failure_message: str, **context):
    """Log unexpected failures and surface them as an opaque 500.

    HTTP and input errors pass through untouched so their handlers can
    render them.
    """
    try:
        yield
    except (HTTPException, services.InvalidPayload, services.DuplicateKey):
        raise
    except Exception:
        logger.exception("%s failed %s", operation, json.dumps(context, default=str, ensure_ascii=True))
        raise HTTPException(status_code=500, detail=failure_message)


def get_content_service(request: Request, db: InMemoryDatabase = Depends(get_database)) -> services.ContentService:
    """Build a `ContentService` honouring the app's reference policy."""
    return services.ContentService(db, validate_refs=request.app.state.settings.VALIDATE_CONCEPT_REFS)


def _register_middleware(app: FastAPI, config: Settings) -> None:
    # Wide-open CORS lets a locally served browser client call the API in dev.
    if config.ALLOW_DEV_CORS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        request.state.request_id = req_id
        started = time.perf_counter()
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = req_id
        if request.url.path.startswith("/api"):
            elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
            logger.info(
                "request_done %s",
                json.dumps(
                    {
                        "request_id": req_id,
                        "path": request.url.path,
                        "method": request.method,
                        "status_code": response.status_code,
                        "duration_ms": elapsed_ms,
                        "client": request.client.host if request.client else "unknown",
                    },
                    ensure_ascii=True,
                ),
            )
        return response


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=_error_body(str(exc.detail)), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=_error_body("Invalid request", jsonable_encoder(exc.errors())))

    @app.exception_handler(services.InvalidPayload)
    async def invalid_payload_handler(request: Request, exc: services.InvalidPayload):
        return JSONResponse(status_code=400, content=_error_body(exc.message, exc.errors))

    @app.exception_handler(services.DuplicateKey)
    async def duplicate_key_handler(request: Request, exc: services.DuplicateKey):
        return JSONResponse(status_code=409, content=_error_body(exc.message))

    # failures outside a route body, e.g. while serializing its return value
    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_error %s",
            json.dumps({"method": request.method, "path": request.url.path}, ensure_ascii=True),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))


def _register_routes(app: FastAPI) -> None:
    @app.get('/api/concepts')
    def list_concepts(db: InMemoryDatabase = Depends(get_database)):
        """List every concept in insertion order."""
        with _internal_errors("list_concepts", "Failed to fetch concepts"):
            return repositories.ConceptRepository(db).list_all()

    @app.get('/api/concepts/category/{category}')
    def list_concepts_by_category(category: str, db: InMemoryDatabase = Depends(get_database)):
        """List concepts in `category`; an unknown category yields `[]`."""
        with _internal_errors("list_concepts_by_category", "Failed to fetch concepts by category", category=category):
            return repositories.ConceptRepository(db).list_by_category(category)

    @app.get('/api/concepts/{slug}', responses={404: {"model": schemas.ErrorOut}})
    def get_concept(slug: str, svc: services.ContentService = Depends(get_content_service)):
        """Return `{concept, theory, codeImplementations, experiments}` for `slug`."""
        with _internal_errors("get_concept", "Failed to fetch concept", slug=slug):
            detail = svc.get_concept_detail(slug)
        if detail is None:
            raise HTTPException(status_code=404, detail="Concept not found")
        return detail

    @app.post('/api/concepts', status_code=201, responses={**ERROR_RESPONSES, 409: {"model": schemas.ErrorOut}})
    def create_concept(payload: dict = Body(...), svc: services.ContentService = Depends(get_content_service)):
        """Create a concept. A slug that is already taken is rejected with 409."""
        with _internal_errors("create_concept", "Failed to create concept", slug=payload.get('slug')):
            return svc.create_concept(payload)

    @app.get('/api/theory/{concept_id}', responses={404: {"model": schemas.ErrorOut}})
    def get_theory(concept_id: int, db: InMemoryDatabase = Depends(get_database)):
        with _internal_errors("get_theory", "Failed to fetch theory content", concept_id=concept_id):
            theory = repositories.TheoryRepository(db).get_for_concept(concept_id)
        if theory is None:
            raise HTTPException(status_code=404, detail="Theory content not found")
        return theory

    @app.post('/api/theory', status_code=201, responses=ERROR_RESPONSES)
    def create_theory(payload: dict = Body(...), svc: services.ContentService = Depends(get_content_service)):
        with _internal_errors("create_theory", "Failed to create theory content", concept_id=payload.get('conceptId')):
            return svc.create_theory(payload)

    @app.get('/api/code/{concept_id}')
    def list_code(concept_id: int, db: InMemoryDatabase = Depends(get_database)):
        with _internal_errors("list_code", "Failed to fetch code implementations", concept_id=concept_id):
            return repositories.CodeRepository(db).list_for_concept(concept_id)

    @app.post('/api/code', status_code=201, responses=ERROR_RESPONSES)
    def create_code(payload: dict = Body(...), svc: services.ContentService = Depends(get_content_service)):
        with _internal_errors("create_code", "Failed to create code implementation", concept_id=payload.get('conceptId')):
            return svc.create_code(payload)

    @app.get('/api/experiments/{concept_id}')
    def list_experiments(concept_id: int, db: InMemoryDatabase = Depends(get_database)):
        with _internal_errors("list_experiments", "Failed to fetch experiments", concept_id=concept_id):
            return repositories.ExperimentRepository(db).list_for_concept(concept_id)

    @app.post('/api/experiments', status_code=201, responses=ERROR_RESPONSES)
    def create_experiment(payload: dict = Body(...), svc: services.ContentService = Depends(get_content_service)):
        with _internal_errors("create_experiment", "Failed to create experiment", concept_id=payload.get('conceptId')):
            return svc.create_experiment(payload)

    @app.get('/api/papers')
    def list_papers(db: InMemoryDatabase = Depends(get_database)):
        with _internal_errors("list_papers", "Failed to fetch papers"):
            return repositories.PaperRepository(db).list_all()

    # declared before /api/papers/{paper_id} so "related" is not read as an id
    @app.get('/api/papers/related')
    def list_related_papers(concepts: List[str] = Query(default=[]), db: InMemoryDatabase = Depends(get_database)):
        """Papers tagged with any of the `concepts` query values."""
        with _internal_errors("list_related_papers", "Failed to fetch related papers", concepts=concepts):
            return repositories.PaperRepository(db).list_related(concepts)

    @app.get('/api/papers/{paper_id}', responses={404: {"model": schemas.ErrorOut}})
    def get_paper(paper_id: int, db: InMemoryDatabase = Depends(get_database)):
        with _internal_errors("get_paper", "Failed to fetch paper", paper_id=paper_id):
            paper = repositories.PaperRepository(db).get(paper_id)
        if paper is None:
            raise HTTPException(status_code=404, detail="Paper not found")
        return paper

    @app.post('/api/papers', status_code=201, responses=ERROR_RESPONSES)
    def create_paper(payload: dict = Body(...), svc: services.ContentService = Depends(get_content_service)):
        with _internal_errors("create_paper", "Failed to create paper", title=payload.get('title')):
            return svc.create_paper(payload)

    @app.post('/api/users', status_code=201, response_model=schemas.UserOut,
              responses={**ERROR_RESPONSES, 409: {"model": schemas.ErrorOut}})
    def signup(payload: dict = Body(...), db: InMemoryDatabase = Depends(get_database)):
        """Register a new user. The password is stored hashed and never returned."""
        with _internal_errors("signup", "Failed to create user", username=payload.get('username')):
            user = services.UserService(db).signup(payload)
        return schemas.UserOut.model_validate(user, from_attributes=True)

    @app.get("/health")
    def health():
        """Lightweight health check for uptime monitoring."""
        return {"status": "ok"}


def create_app(db: Optional[InMemoryDatabase] = None, config: Optional[Settings] = None) -> FastAPI:
    """Build the API around an explicit store.

    When `db` is omitted a fresh store is created and, if
    `LOAD_SEED_DATA` is enabled, filled with the seed dataset.
    """
    config = config or settings
    if db is None:
        db = InMemoryDatabase()
        if config.LOAD_SEED_DATA:
            load_seed_data(db)
    app = FastAPI(title="Learning Content Hub API")
    app.state.db = db
    app.state.settings = config
    _register_middleware(app, config)
    _register_exception_handlers(app)
    _register_routes(app)
    return app


app = create_app()
