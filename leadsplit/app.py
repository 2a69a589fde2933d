import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadsplit.application import configure_services
from leadsplit.core.errors import (
    ConflictFault,
    DistributionFault,
    NoEligibleWorkersFault,
    NotFoundFault,
    ValidationFault,
)
from leadsplit.core.logging_setup import configure_logging
from leadsplit.core.settings import Settings, load_settings
from leadsplit.routes import agents, distributions, upload

logger = logging.getLogger(__name__)

FAULT_STATUS: list[tuple[type[DistributionFault], int]] = [
    (ValidationFault, 400),
    (NotFoundFault, 404),
    (NoEligibleWorkersFault, 409),
    (ConflictFault, 409),
]


def _status_for(exc: DistributionFault) -> int:
    for fault_type, status_code in FAULT_STATUS:
        if isinstance(exc, fault_type):
            return status_code
    return 500


async def _fault_handler(request: Request, exc: DistributionFault) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    error: dict[str, object] = {"code": exc.code, "message": exc.message}
    details = getattr(exc, "details", None)
    if details:
        error["details"] = details
    elif isinstance(exc, ValidationFault):
        error["details"] = {"errors": exc.errors}
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    configure_services(default_agent_count=settings.default_agent_count)

    app = FastAPI(title="Leadsplit Distribution API", version="0.1.0")
    app.state.settings = settings

    origins = settings.cors_origins or ["http://localhost:3000", "http://127.0.0.1:3000"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DistributionFault, _fault_handler)

    app.include_router(upload.router, prefix="/api")
    app.include_router(distributions.router, prefix="/api")
    app.include_router(agents.router, prefix="/api")
    app.include_router(agents.tasks_router, prefix="/api")

    @app.get("/api/health", include_in_schema=False)
    async def health() -> JSONResponse:
        """Provide a lightweight liveness probe for container checks."""
        return JSONResponse({"status": "ok", "docs": "/docs"})

    return app


app = create_app()
