import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payroll_console.application import WizardNotFoundError
from payroll_console.config import get_settings
from payroll_console.core.validation import ValidationError
from payroll_console.infrastructure import (
    ERPConfigurationError,
    ERPError,
    FrappeClient,
    RosterLookupError,
    configure_erp_client,
    get_erp_client,
)
from payroll_console.logging_config import configure_logging
from payroll_console.routes import salary_slips, wizard

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Close the ERP client installed at start-up."""
    yield
    client = get_erp_client()
    if isinstance(client, FrappeClient):
        await client.aclose()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Payroll Run API", version="0.1.0", lifespan=lifespan)

    if settings.erp_configured:
        client = FrappeClient(
            base_url=settings.frappe_url,  # type: ignore[arg-type]
            api_key=settings.frappe_api_key,  # type: ignore[arg-type]
            api_secret=settings.frappe_api_secret,  # type: ignore[arg-type]
            timeout=settings.frappe_timeout,
        )
        configure_erp_client(client)
    else:
        logger.warning("FRAPPE_URL or API credentials missing; ERP client not configured")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(WizardNotFoundError)
    async def not_found_handler(request: Request, exc: WizardNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": f"not found: {exc.args[0]}"})

    @app.exception_handler(ERPError)
    async def erp_error_handler(request: Request, exc: ERPError) -> JSONResponse:
        if isinstance(exc, ERPConfigurationError):
            return JSONResponse(status_code=503, content={"detail": exc.message})
        content: dict[str, object] = {"detail": exc.message}
        if isinstance(exc, RosterLookupError):
            content["retry"] = True
        else:
            content["upstream_status"] = exc.status_code
        return JSONResponse(status_code=502, content=content)

    app.include_router(wizard.router, prefix="/api")
    app.include_router(salary_slips.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Payroll Run API",
                "docs": "/docs",
                "health": "/api/payroll/wizards",
            }
        )

    return app


app = create_app()
