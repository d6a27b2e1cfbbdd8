import os

from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from database import lifespan
from routers import api_status, authentication, get_me, job_application, job_posting, notification, saved_job
from utilities.exceptions import (
    AuthorizationException,
    ConflictException,
    DependencyFailureException,
    DomainException,
    DuplicateApplicationException,
    InvalidTransitionException,
    JobClosedException,
    ResourceNotFoundException,
    ValidationException,
)
from utilities.logging_config import configure_logging


configure_logging()


description = """
A lightweight RESTful API for a job board using FastAPI and SQLModel 🚀
"""


app = FastAPI(lifespan=lifespan,
              title="jobboard API",
              description=description,
              version="0.1.0",
              license_info={
                  "name": "MIT",
                  "url": "https://opensource.org/license/MIT",
              },
              default_response_class=ORJSONResponse)

app.add_middleware(GZipMiddleware, minimum_size=1000, compresslevel=4)


DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "https://localhost:3000",
    "http://localhost:5000",
    "https://localhost:5000",
    "http://localhost:5173",
    "https://localhost:5173",
]

origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()] or DEFAULT_ORIGINS

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["GET", "POST", "OPTIONS", "HEAD", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "accept", "Authorization", "Authorization-Refresh"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Expect-CT"] = "max-age=86400, enforce"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["X-Frame-Options"] = "DENY"
    return response


# Most specific first; the first isinstance match wins
DOMAIN_EXCEPTION_STATUS: list[tuple[type[DomainException], int]] = [
    (ResourceNotFoundException, 404),
    (AuthorizationException, 403),
    (DuplicateApplicationException, 409),
    (JobClosedException, 400),
    (InvalidTransitionException, 409),
    (ValidationException, 422),
    (ConflictException, 409),
    (DependencyFailureException, 503),
]


def status_code_for(exc: DomainException) -> int:
    for exc_type, status_code in DOMAIN_EXCEPTION_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return 500


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected with {status_code}: {exc}")
    return ORJSONResponse(status_code=status_code, content={"detail": str(exc)})


app.include_router(api_status.router, tags=["API status"])
app.include_router(authentication.router, tags=["Authentication"])
app.include_router(get_me.router, tags=["Users"])
app.include_router(job_posting.router, tags=["Job Posting"])
app.include_router(job_application.router, tags=["Job Application"])
app.include_router(notification.router, tags=["Notification"])
app.include_router(saved_job.router, tags=["Saved Job"])
