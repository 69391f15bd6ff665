import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.admin.router import router as admin_router
from app.auth.router import router as auth_router
from app.config import Settings, get_settings
from app.exceptions import DomainError, domain_error_handler
from app.lms.router import router as lms_router
from app.payments.router import router as payments_router
from app.progress.router import router as progress_router
from app.rate_limit import limiter
from shared.database.postgres import get_async_engine, session_factory_for
from shared.middleware.error_handler import (
    error_envelope_middleware,
    http_exception_handler,
    request_validation_handler,
)
from shared.middleware.request_id import request_id_middleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    engine = get_async_engine(settings.learning_database_url)
    app.state.session_factory = session_factory_for(engine)

    yield

    # Shutdown
    await engine.dispose()


SWAGGER_DESCRIPTION = """\
## LearnHub Learning Service

Identity, course authoring, purchase-gated enrollment and sequential
progression for the LearnHub platform.

### Domain Tags

| Tag | Description |
|-----|-------------|
| **Auth** | OTP registration, login, token refresh, password reset |
| **Admin** | Instructor approval lifecycle, learner blocking |
| **LMS** | Course, module and lecture authoring with ordering |
| **Payments** | Razorpay orders, signature verification, enrollment |
| **Progress** | Module unlock chain and lecture completion |

### Status Transitions

```
Instructor: pending → approved | rejected,  approved ⇄ blocked
Enrollment: pending | failed → completed
OTP:        issued → consumed | expired
```

### Errors

Every error body is `{"error": {"code", "message"}, "request_id"}`.
"""


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = FastAPI(
        title="LearnHub Learning Service",
        version="0.1.0",
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Attach rate limiter state before middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Last added = outermost; CORS wraps everything, including 429s.
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")
    app.include_router(lms_router, prefix="/api/v1")
    app.include_router(payments_router, prefix="/api/v1")
    app.include_router(progress_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "service": "learning"}

    return app


app = create_app()
