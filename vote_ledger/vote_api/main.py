"""
FastAPI application for the vote ledger.

Exposes the two endpoints the sign-in form relies on:
- GET  /api/votes  list every recorded vote, oldest first
- POST /api/vote   record one vote per account
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .accounts import AccountDirectory, InMemoryAccountDirectory, RedisAccountDirectory
from .config import Settings, settings
from .errors import VoteLedgerError
from .ledger import InMemoryVoteLedger, PostgresVoteLedger, VoteLedger
from .models import (
    ErrorResponse,
    HealthResponse,
    VoteItem,
    VoteRequest,
    VoteResponse,
)
from .service import VoteService

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Prometheus metrics
votes_recorded = Counter(
    "votes_recorded_total",
    "Total number of votes recorded"
)
vote_errors = Counter(
    "vote_errors_total",
    "Total number of vote submission errors",
    ["error_type"]
)
request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"]
)

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/api")


def build_ledger(app_settings: Settings) -> VoteLedger:
    """Create the ledger backend named by LEDGER_BACKEND."""
    if app_settings.LEDGER_BACKEND == "postgres":
        return PostgresVoteLedger(
            app_settings.postgres_dsn,
            min_size=app_settings.POSTGRES_POOL_MIN_SIZE,
            max_size=app_settings.POSTGRES_POOL_MAX_SIZE
        )
    return InMemoryVoteLedger()


def build_accounts(app_settings: Settings) -> AccountDirectory:
    """Create the account directory named by ACCOUNTS_BACKEND."""
    if app_settings.ACCOUNTS_BACKEND == "redis":
        return RedisAccountDirectory(
            app_settings.redis_url,
            key=app_settings.REDIS_ACCOUNTS_KEY
        )
    if app_settings.ACCOUNTS_FILE:
        return InMemoryAccountDirectory.from_file(app_settings.ACCOUNTS_FILE)
    logger.warning("No ACCOUNTS_FILE configured; every sign-in will be rejected")
    return InMemoryAccountDirectory()


def get_vote_service(request: Request) -> VoteService:
    return request.app.state.vote_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    service_name = app.state.settings.SERVICE_NAME
    ledger = app.state.vote_service.ledger
    accounts = app.state.vote_service.accounts

    # Startup
    logger.info(f"Starting {service_name} service...")
    try:
        await ledger.initialize()
    except Exception as e:
        logger.error(f"Failed to start {service_name}: {e}")
        raise

    try:
        await accounts.initialize()
    except Exception as e:
        logger.error(f"Failed to start {service_name}: {e}")
        await ledger.close()
        raise

    logger.info(f"{service_name} started successfully")

    yield

    # Shutdown
    logger.info(f"Shutting down {service_name} service...")
    await accounts.close()
    await ledger.close()
    logger.info(f"{service_name} shut down successfully")


async def vote_ledger_error_handler(request: Request, exc: VoteLedgerError) -> JSONResponse:
    """Translate domain errors into ErrorResponse bodies."""
    error_type = type(exc).__name__
    vote_errors.labels(error_type=error_type).inc()
    body = ErrorResponse(error=error_type, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Answer throttled submissions with the same ErrorResponse shape as other failures."""
    vote_errors.labels(error_type="rate_limited").inc()
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {exc.detail}")
    body = ErrorResponse(
        error="RateLimitExceeded",
        message="Too many requests, please try again later",
        details={"limit": str(exc.detail)}
    )
    return JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content=body.model_dump())


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or incomplete JSON bodies are answered with 400."""
    vote_errors.labels(error_type="request_validation_error").inc()
    body = ErrorResponse(
        error="VoteValidationError",
        message="Email and password are required",
        details={"errors": jsonable_encoder(exc.errors())}
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


async def prometheus_middleware(request: Request, call_next):
    """Middleware to track request duration."""
    started = time.perf_counter()
    response = await call_next(request)
    request_duration.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).observe(time.perf_counter() - started)
    return response


@router.get(
    "/votes",
    response_model=list[VoteItem],
    responses={
        500: {"model": ErrorResponse, "description": "Internal server error"}
    }
)
async def list_votes(service: VoteService = Depends(get_vote_service)) -> list[VoteItem]:
    """
    Get every recorded vote.

    Returns the ledger in insertion order (oldest first), each entry with
    the email as submitted and the acceptance timestamp.
    """
    try:
        records = await service.list_votes()
        return [VoteItem.from_record(record) for record in records]
    except VoteLedgerError:
        raise
    except Exception as e:
        logger.error(f"Error listing votes: {e}")
        raise VoteLedgerError()


@router.post(
    "/vote",
    response_model=VoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Email or password missing"},
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        409: {"model": ErrorResponse, "description": "Already voted"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Internal server error"}
    }
)
@limiter.limit(settings.RATE_LIMIT)
async def submit_vote(
    request: Request,
    vote: VoteRequest,
    service: VoteService = Depends(get_vote_service)
) -> VoteResponse:
    """
    Submit a vote.

    - **email**: email or phone identifying the account
    - **password**: account password

    One vote per account; identities compare case-insensitively. On success
    the client should re-fetch GET /api/votes.
    """
    try:
        record = await service.submit_vote(vote.email, vote.password)
    except VoteLedgerError:
        raise
    except Exception as e:
        logger.error(f"Error submitting vote: {e}")
        raise VoteLedgerError()

    votes_recorded.inc()

    return VoteResponse(
        status="recorded",
        message="Thank you for voting",
        email=record.raw_identity,
        timestamp=record.timestamp,
        refresh=True
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        503: {"model": HealthResponse, "description": "Service unhealthy"}
    }
)
async def health_check(service: VoteService = Depends(get_vote_service)) -> JSONResponse:
    """
    Check health of the service and its backends.

    Returns overall health status and individual backend statuses.
    """
    services = {
        "ledger": "connected" if await service.ledger.check_health() else "disconnected",
        "accounts": "connected" if await service.accounts.check_health() else "disconnected",
    }

    all_healthy = all(state == "connected" for state in services.values())

    response = HealthResponse(
        status="healthy" if all_healthy else "unhealthy",
        services=services,
        timestamp=datetime.now(timezone.utc)
    )

    return JSONResponse(
        status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(mode="json")
    )


def create_app(
    ledger: Optional[VoteLedger] = None,
    accounts: Optional[AccountDirectory] = None,
    app_settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Backends default to the ones named in the settings; tests pass their own.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Vote Ledger API",
        description="API for submitting and listing votes, one per account",
        version=app_settings.API_VERSION,
        lifespan=lifespan
    )
    app.state.settings = app_settings
    app.state.vote_service = VoteService(
        ledger if ledger is not None else build_ledger(app_settings),
        accounts if accounts is not None else build_accounts(app_settings)
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=app_settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=app_settings.CORS_ALLOW_METHODS,
        allow_headers=app_settings.CORS_ALLOW_HEADERS,
    )
    app.middleware("http")(prometheus_middleware)

    # Add rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(VoteLedgerError, vote_ledger_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.include_router(router)

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "service": app_settings.SERVICE_NAME,
            "version": app_settings.API_VERSION,
            "status": "running",
            "endpoints": {
                "list_votes": "/api/votes",
                "submit_vote": "/api/vote",
                "health": "/api/health",
                "metrics": "/metrics"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vote_ledger.vote_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
