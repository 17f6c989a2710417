"""
FastAPI backend server for the shipment ledger service.

This module builds the FastAPI application that exposes the shipment
endpoints.  It sets up:
- Logging from the ``[logging]`` configuration section
- CORS middleware for the browser frontend
- The process-wide ledger client and mirror store
- Exception handlers that render every failure as
  ``{"success": false, "error": ...}``

The ledger client and mirror store are created once, in :func:`create_app`,
and shared by all requests.  Tests pass their own instances.
"""

import logging

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shipment_ledger import __version__
from shipment_ledger.api.models import error_envelope
from shipment_ledger.api.routes import register_routes
from shipment_ledger.config import LoggingSettings, ServiceConfig
from shipment_ledger.core.errors import ShipmentOperationError
from shipment_ledger.db.errors import MirrorError
from shipment_ledger.db.mirror import MirrorStore
from shipment_ledger.ledger.client import LedgerClient

logger = logging.getLogger(__name__)

_LOG_FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
}


def _json_formatter() -> logging.Formatter:
    """One JSON object per log line, rendered by structlog."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )


def configure_logging(settings: LoggingSettings) -> None:
    """Configure root logging from the ``[logging]`` settings."""
    handler = logging.StreamHandler()
    if settings.format == "json":
        handler.setFormatter(_json_formatter())
    else:
        handler.setFormatter(logging.Formatter(_LOG_FORMATS[settings.format]))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.level)


def build_ledger_client(cfg: ServiceConfig) -> LedgerClient:
    """Create the process-wide ledger client from configuration.

    Raises:
        LedgerConfigurationError: Contract settings are present but invalid.
    """
    from shipment_ledger.ledger.binding import build_contract_binding

    binding = build_contract_binding(cfg.ledger)
    return LedgerClient(binding, gas_limit=cfg.ledger.gas_limit)


def build_mirror_store(cfg: ServiceConfig) -> MirrorStore:
    """Create the process-wide mirror store and make sure its schema exists.

    A mirror that cannot be initialized does not stop startup: ledger
    endpoints keep working and every later mirror call fails softly.
    """
    store = MirrorStore.from_settings(cfg.mirror)
    try:
        store.init_schema()
    except MirrorError:
        logger.warning(
            "Mirror unavailable at %s; continuing without it", store.db_path, exc_info=True
        )
    return store


def create_app(
    ledger: LedgerClient | None = None,
    mirror: MirrorStore | None = None,
    cfg: ServiceConfig | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        ledger: Ledger client to use; built from ``cfg`` when omitted.
        mirror: Mirror store to use; built from ``cfg`` when omitted.
        cfg: Configuration; the module-level singleton when omitted.
    """
    if cfg is None:
        from shipment_ledger.config import config as cfg
    if ledger is None:
        ledger = build_ledger_client(cfg)
    if mirror is None:
        mirror = build_mirror_store(cfg)

    docs_url = "/docs" if cfg.docs_should_be_enabled else None
    app = FastAPI(
        title="Shipment Ledger API",
        version=__version__,
        docs_url=docs_url,
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.security.cors_origins,
        allow_credentials=cfg.security.cors_allow_credentials,
        allow_methods=cfg.security.cors_allow_methods,
        allow_headers=cfg.security.cors_allow_headers,
    )

    @app.exception_handler(ShipmentOperationError)
    async def _operation_error_handler(_request: Request, exc: ShipmentOperationError):
        return JSONResponse(status_code=int(exc.severity), content=error_envelope(exc.message))

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(_request: Request, exc: RequestValidationError):
        # loc is ("body", field, ...); union members add a trailing type name.
        fields = sorted(
            {str(err["loc"][1]) for err in exc.errors() if len(err.get("loc") or ()) > 1}
        )
        message = "Invalid request body"
        if fields:
            message = f"{message}: {', '.join(fields)}"
        return JSONResponse(status_code=400, content=error_envelope(message))

    register_routes(app, ledger, mirror)
    return app


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Configure logging, build the app and run it under uvicorn."""
    import uvicorn

    from shipment_ledger.config import config

    configure_logging(config.logging)
    app = create_app(cfg=config)

    bind_host = host or config.server.host
    bind_port = port or config.server.port
    logger.info("Starting Shipment Ledger API on %s:%d", bind_host, bind_port)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=config.logging.level.lower())
