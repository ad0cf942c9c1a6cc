"""Peças compartilhadas pelos routers: dependências, rota com fallback de erro e validação."""
import logging
from collections.abc import Callable

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..dispenser import RowDispenser
from ..errors import ApiError, BadRequest
from ..gateway import KeyRotation, KeysExhaustedError, NoCredentialsError

logger = logging.getLogger(__name__)


class GatewayRoute(APIRoute):
    """
    Rota que transforma exceções inesperadas em 500 com corpo JSON.

    Erros conhecidos (ApiError, HTTPException, validação, falta de credenciais) seguem
    para os exception handlers da aplicação.
    """

    def get_route_handler(self) -> Callable:
        original_handler = super().get_route_handler()

        async def handler(request: Request):
            try:
                return await original_handler(request)
            except (
                ApiError,
                NoCredentialsError,
                KeysExhaustedError,
                StarletteHTTPException,
                RequestValidationError,
            ):
                raise
            except Exception as e:
                logger.error(
                    "[%s %s] Erro: %s", request.method, request.url.path, e, exc_info=True
                )
                return JSONResponse(
                    {"error": "Internal server error", "details": str(e)},
                    status_code=500,
                )

        return handler


def get_rotation(request: Request) -> KeyRotation:
    return request.app.state.rotation


def get_dispenser(request: Request) -> RowDispenser:
    return request.app.state.dispenser


def require_sheet(
    sheet_id: str | None,
    sheet_name: str | None,
    required: dict | list,
    message: str = "Missing required parameters",
    **extra,
) -> tuple[str, str]:
    """
    Valida a presença de sheetId e sheetName.

    Args:
        sheet_id: Valor recebido para sheetId.
        sheet_name: Valor recebido para sheetName.
        required: Descrição dos parâmetros obrigatórios para o corpo de erro.
        message: Mensagem de erro.
        extra: Campos adicionais do corpo de erro (ex.: exemplos de uso).

    Raises:
        BadRequest: Se algum dos dois estiver ausente.
    """
    if not sheet_id or not sheet_name:
        raise BadRequest(message, required=required, **extra)
    return sheet_id, sheet_name


def is_truthy(value: str | bool | None) -> bool:
    if isinstance(value, bool):
        return value
    return (value or "").strip().lower() == "true"
