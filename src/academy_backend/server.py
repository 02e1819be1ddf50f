import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from academy_backend.api.accounts import accounts_router
from academy_backend.api.admin import admin_router
from academy_backend.api.courses import course_router
from academy_backend.api.exceptions import domain_error_to_http_exception
from academy_backend.api.lessons import lesson_router
from academy_backend.api.payments import payments_router
from academy_backend.api.user import auth_router, user_router
from academy_backend.database import get_engine
from academy_backend.errors import AcademyError, InvariantViolation
from academy_backend.logging_config import configure_logging
from academy_backend.model import Base
from academy_backend.settings import settings

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()

    if not settings.is_production:
        Base.metadata.create_all(get_engine())
        logger.info("Development mode: database schema ensured")

    yield

app = FastAPI(title="Academy entitlement & progress API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)

@app.exception_handler(AcademyError)
async def academy_error_handler(request: Request, error: AcademyError):
    exception = domain_error_to_http_exception(error)
    return JSONResponse(status_code=exception.status_code, content={"detail": exception.detail}, headers=exception.headers)

@app.exception_handler(InvariantViolation)
async def invariant_violation_handler(request: Request, error: InvariantViolation):
    logger.error(f"Invariant violation on {request.method} {request.url.path}: {error}")
    return JSONResponse(status_code=500, content={"detail": {"code": "internal_error", "message": "Internal server error"}})

app.include_router(
    course_router,
    prefix="/courses",
    tags=["courses"]
)

app.include_router(
    lesson_router,
    prefix="/lessons",
    tags=["lessons", "progress"]
)

app.include_router(
    user_router,
    prefix="/user",
    tags=["user", "me"]
)

app.include_router(
    auth_router,
    prefix="/auth",
    tags=["user", "authentication"]
)

app.include_router(
    admin_router,
    prefix="/admin",
    tags=["admin", "structure"]
)

app.include_router(
    accounts_router,
    prefix="/admin/users",
    tags=["admin", "accounts"]
)

app.include_router(
    payments_router,
    prefix="/payments",
    tags=["payments"]
)

@app.head("/", status_code=204)
def get_status_head():
    return
