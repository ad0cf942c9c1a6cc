"""
Aplicação HTTP do gateway.

Routers:
    - search: /api/search e /api/getrow
    - autoget: /api/autoget
    - sheets: /api/sheets e /api/sheets/{sheetId}
    - diagnostics: /api/debug, /api/test-sheets e /api/test
    - ui: página de teste em /
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..__version__ import __version__
from ..claims import ClaimCoordinator
from ..config import Config
from ..dispenser import RowDispenser
from ..errors import ApiError, not_configured
from ..gateway import KeyRotation, KeysExhaustedError, NoCredentialsError, configure_rate_limiting
from . import autoget, diagnostics, search, sheets, ui

logger = logging.getLogger(__name__)


def create_app(config: Config | None = None, rotation: KeyRotation | None = None) -> FastAPI:
    """
    Cria a aplicação FastAPI com o estado compartilhado do processo.

    Args:
        config (Config | None): Configuração. Lida do ambiente se omitida.
        rotation (KeyRotation | None): Rotação de chaves. Criada a partir das chaves
            da configuração se omitida.

    Returns:
        FastAPI: Aplicação pronta para o uvicorn.
    """
    config = config or Config()
    configure_rate_limiting(config.rate_limit_seconds, config.rate_limit_jitter_seconds)

    if rotation is None:
        rotation = KeyRotation(config.service_account_keys, cooldown_seconds=config.key_cooldown_seconds)
    if not rotation.key_count:
        logger.warning("Nenhuma conta de serviço configurada; as chamadas ao Sheets vão falhar.")
    else:
        logger.info("%d conta(s) de serviço configurada(s).", rotation.key_count)

    coordinator = ClaimCoordinator(
        busy_threshold=config.queue_busy_threshold,
        queue_entry_ttl=config.queue_entry_ttl_seconds,
        row_claim_ttl=config.row_claim_ttl_seconds,
        used_value_ttl=config.used_value_ttl_seconds,
        poll_interval=config.queue_poll_seconds,
    )

    app = FastAPI(title="Google Sheets API", version=__version__)
    app.state.config = config
    app.state.rotation = rotation
    app.state.coordinator = coordinator
    app.state.dispenser = RowDispenser(
        rotation, coordinator, request_timeout=config.request_timeout_seconds
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(NoCredentialsError)
    @app.exception_handler(KeysExhaustedError)
    async def no_credentials_handler(request: Request, exc: RuntimeError):
        logger.error("[%s %s] %s", request.method, request.url.path, exc)
        error = not_configured(rotation.key_count)
        return JSONResponse(error.to_dict(), status_code=error.status_code)

    app.include_router(search.router)
    app.include_router(autoget.router)
    app.include_router(sheets.router)
    app.include_router(diagnostics.router)
    app.include_router(ui.router)

    return app
