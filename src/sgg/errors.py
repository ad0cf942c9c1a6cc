"""Erros que viram respostas HTTP com corpo JSON {"error": ..., **extra}."""
from typing import Any


class ApiError(Exception):
    status_code = 500

    def __init__(self, error: Any, **extra: Any):
        super().__init__(str(error))
        self.error = error
        self.extra = extra

    def to_dict(self) -> dict:
        return {"error": self.error, **self.extra}


class BadRequest(ApiError):
    status_code = 400


class NotFound(ApiError):
    status_code = 404


class RequestTimeout(ApiError):
    status_code = 408


def not_configured(available_keys: int = 0) -> ApiError:
    """Erro padrão quando nenhuma conta de serviço está configurada."""
    return ApiError(
        "Service Account not configured",
        details="No GOOGLE_SERVICE_ACCOUNT_KEY environment variables found",
        availableKeys=available_keys,
    )
