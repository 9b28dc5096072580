from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rrfsearch import __version__
from rrfsearch.config import get_config
from rrfsearch.errors import InvalidRequest, SearchError, UnexpectedFailure
from rrfsearch.logging import configure_logging, get_logger
from rrfsearch.server.runtime import get_runtime, get_runtime_async, is_debug, reset_runtime
from rrfsearch.server.schemas import ErrorResponse, SearchRequest, SearchResponseModel

_logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    config = get_config()
    configure_logging(config.log_level, json_logs=config.json_logs)
    await get_runtime_async()
    yield
    await reset_runtime()


app = FastAPI(
    title="rrfsearch",
    description="Hybrid keyword + semantic document search with metadata filters",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SearchError)
async def search_error_handler(request: Request, exc: SearchError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(exc.to_dict(debug=is_debug())),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return await search_error_handler(request, InvalidRequest("Invalid request body", errors=errors))


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post(
    "/search",
    responses={
        200: {"model": SearchResponseModel},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def search(request: SearchRequest):
    try:
        orchestrator = get_runtime().orchestrator
        response = await orchestrator.search(request.query, request.effective_filter, request.to_params())
        return response.to_dict()
    except SearchError:
        raise
    except Exception as e:
        _logger.exception("search failed unexpectedly")
        raise UnexpectedFailure(cause=e) from e
