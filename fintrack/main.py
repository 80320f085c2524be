import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fintrack.config import settings
from fintrack.core.database import init_db, AsyncSessionLocal
from fintrack.core.errors import BackendError, NotFoundError, ValidationError
from fintrack.core.log_config import configure_logging
from fintrack.core.seed import seed_data
from fintrack.api.router import api_router
from fintrack.services.store import FIELD_MESSAGES

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "Transactions",
        "description": "Income and expense records.",
    },
    {
        "name": "Budgets",
        "description": "Category limits and spend against them.",
    },
    {
        "name": "Reports",
        "description": "Summaries, chart series and CSV export.",
    },
    {
        "name": "System",
        "description": "Service endpoints.",
    },
]

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
### API

Personal finance tracking: transactions, budgets and reports.

    """,
    version=settings.VERSION,
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        loc = [str(part) for part in err["loc"] if part != "body"]
        field = loc[-1] if loc else "body"
        errors.setdefault(field, FIELD_MESSAGES.get(field, err["msg"]))
    return JSONResponse(status_code=422, content={"detail": "Invalid request", "errors": errors})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.on_event("startup")
async def startup():
    configure_logging()
    await init_db()
    if settings.SEED_DEMO_DATA:
        async with AsyncSessionLocal() as session:
            await seed_data(session)
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/health", tags=["System"])
def health():
    return {
        "status": "operational",
        "version": settings.VERSION,
        "today": settings.today(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fintrack.main:app", host="0.0.0.0", port=8000)
