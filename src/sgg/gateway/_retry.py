import logging
import random
import threading
import time
from collections.abc import Callable
from typing import TypeVar

from gspread.exceptions import APIError, SpreadsheetNotFound, WorksheetNotFound

logger = logging.getLogger(__name__)

ReturnType = TypeVar("ReturnType")

# Exceções que NÃO devem passar por retry (erros lógicos/esperados)
NON_RETRYABLE_EXCEPTIONS = (
    WorksheetNotFound,
    SpreadsheetNotFound,
    ValueError,
    KeyError,
    TypeError,
    # gspread converte o 403 de open_by_key (planilha não compartilhada) em PermissionError
    PermissionError,
)

# Trechos que identificam erro de cota na mensagem da API (comparação em minúsculas)
QUOTA_ERROR_MARKERS = (
    "quota exceeded",
    "quota metric",
    "read requests per minute",
    "quotaexceeded",
    "rate_limit_exceeded",
)

# Estado global para rate limiting
_rate_lock = threading.Lock()
_last_request_time: float = 0.0
_base_rate_limit: float = 0.0
_jitter_max_seconds: float = 0.0


def api_status_code(error: BaseException) -> int | None:
    """
    Extrai o status HTTP de um APIError do gspread.

    Args:
        error: Exceção a ser inspecionada.

    Returns:
        int | None: Código HTTP, ou None se não for possível determinar.
    """
    if not isinstance(error, APIError):
        return None
    code = getattr(error, "code", None)
    if isinstance(code, int):
        return code
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def is_quota_error(error: BaseException) -> bool:
    """
    Verifica se o erro indica estouro de cota da conta de serviço.

    Args:
        error: Exceção levantada por uma chamada à API.

    Returns:
        bool: True se for erro de cota (HTTP 429 ou mensagem de quota).
    """
    if api_status_code(error) == 429:
        return True
    text = f"{error} {getattr(error, 'args', '')}".lower()
    return any(marker in text for marker in QUOTA_ERROR_MARKERS)


def _is_client_error(error: BaseException) -> bool:
    """Erros 4xx (exceto cota) não mudam com uma nova tentativa."""
    status = api_status_code(error)
    return status is not None and 400 <= status < 500


def configure_rate_limiting(rate_limit_seconds: float, jitter_max_seconds: float) -> None:
    """
    Configura parâmetros de rate limiting para todas as operações do gateway.

    Args:
        rate_limit_seconds: Tempo mínimo entre requisições em segundos (0 desativa).
        jitter_max_seconds: Jitter aleatório máximo somado ao intervalo.
    """
    global _base_rate_limit, _jitter_max_seconds
    with _rate_lock:
        _base_rate_limit = max(0.0, rate_limit_seconds)
        _jitter_max_seconds = max(0.0, jitter_max_seconds)
    logger.info(
        "Rate limiting configurado: %.3fs + jitter de até %.3fs",
        _base_rate_limit,
        _jitter_max_seconds,
    )


def _apply_rate_limit() -> None:
    """
    Aplica rate limiting com jitter entre requisições concorrentes.

    O horário da próxima requisição é reservado sob lock, e a espera acontece
    fora dele para não bloquear as demais threads além do necessário.
    """
    global _last_request_time

    with _rate_lock:
        if _base_rate_limit <= 0 and _jitter_max_seconds <= 0:
            _last_request_time = time.time()
            return

        now = time.time()
        jitter = random.uniform(0, _jitter_max_seconds) if _jitter_max_seconds > 0 else 0.0
        scheduled = max(now, _last_request_time + _base_rate_limit) + jitter
        _last_request_time = scheduled

    total_delay = scheduled - now
    if total_delay > 0:
        logger.debug("Rate limiting: aguardando %.3fs (jitter: %.3fs)", total_delay, jitter)
        time.sleep(total_delay)


def retry(
    function: Callable[[], ReturnType],
    tries: int = 5,
    delay: float = 1.0,
    backoff: float = 2.0,
) -> ReturnType:
    """
    Tenta executar uma função várias vezes com um atraso exponencial entre as tentativas em caso de falha.

    Exceções lógicas/esperadas (WorksheetNotFound, SpreadsheetNotFound, ValueError, etc.),
    erros de cota e erros 4xx da API NÃO passam por retry e são lançados imediatamente.
    Erros de cota são tratados pela rotação de chaves.

    Apenas erros transiêntes de rede/API são retryados.

    Args:
        function (Callable): A função a ser executada.
        tries (int): Número máximo de tentativas. Padrão é 5.
        delay (float): Atraso inicial entre as tentativas em segundos. Padrão é 1.0.
        backoff (float): Fator de multiplicação para o atraso após cada falha.
    Returns:
        O resultado da função executada, se bem-sucedida.
    """
    exception: Exception | None = None
    wait = delay

    for attempt in range(1, tries + 1):
        try:
            # Aplica rate limiting antes de cada tentativa
            _apply_rate_limit()
            return function()

        except NON_RETRYABLE_EXCEPTIONS:
            # Erros lógicos/esperados - não retry
            raise

        except Exception as e:
            if is_quota_error(e) or _is_client_error(e):
                raise

            exception = e
            if attempt == tries:
                logger.error(
                    "Todas as tentativas falharam após %d tentativas: %s",
                    tries,
                    str(e),
                    exc_info=True,
                )
                break

            logger.warning(
                "Tentativa %d falhou com erro: %s. Retentando em %.2f segundos...",
                attempt,
                str(e),
                wait,
            )
            time.sleep(wait)
            wait *= backoff

    assert exception is not None
    raise exception
