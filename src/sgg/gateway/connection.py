import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from gspread import Client, Spreadsheet, SpreadsheetNotFound
from google.oauth2.service_account import Credentials

from ._retry import api_status_code, retry


logger = logging.getLogger(__name__)

ReturnType = TypeVar("ReturnType")

SCOPES = [
    'https://www.googleapis.com/auth/spreadsheets',
]

# Planilhas já abertas, por (cliente, ID da planilha)
_cache_lock = threading.Lock()
_spreadsheet_cache: dict[tuple[int, str], Spreadsheet] = {}


def connect_service_account(info: dict) -> Client:
    """
    Conecta-se à API do Google Sheets usando as informações de uma conta de serviço.

    Args:
        info (dict): Conteúdo do JSON da conta de serviço, já normalizado.

    Returns:
        Client: Cliente autenticado do gspread para interagir com a API do Google Sheets.
    """
    logger.debug("Conectando à API do Google Sheets usando: %s", info.get('client_email'))
    credentials = Credentials.from_service_account_info(
        info,
        scopes=SCOPES,
    )
    client = Client(auth=credentials)
    logger.info("Cliente autenticado como %s.", info.get('client_email'))
    return client


def open_spreadsheet(client: Client, spreadsheet_id: str) -> Spreadsheet:
    """
    Obtém uma planilha do Google Sheets pelo seu ID, com cache por cliente.

    Args:
        client (Client): Cliente autenticado.
        spreadsheet_id (str): ID da planilha do Google Sheets.

    Returns:
        Spreadsheet: Objeto da planilha obtida.
    """
    cache_key = (id(client), spreadsheet_id)
    with _cache_lock:
        cached = _spreadsheet_cache.get(cache_key)
    if cached is not None:
        return cached

    try:
        logger.debug("Obtendo a planilha com ID: %s", spreadsheet_id)
        spreadsheet = retry(lambda: client.open_by_key(spreadsheet_id))
        logger.debug("Planilha obtida com sucesso: %s", spreadsheet_id)

    except SpreadsheetNotFound:
        logger.error("Planilha com ID %s não encontrada.", spreadsheet_id)
        raise

    with _cache_lock:
        _spreadsheet_cache[cache_key] = spreadsheet
    return spreadsheet


def clear_spreadsheet_cache() -> None:
    """Esvazia o cache de planilhas abertas."""
    with _cache_lock:
        _spreadsheet_cache.clear()


def evict_spreadsheet(client: Client, spreadsheet_id: str) -> None:
    """Remove do cache a planilha aberta por um cliente."""
    with _cache_lock:
        removed = _spreadsheet_cache.pop((id(client), spreadsheet_id), None)
    if removed is not None:
        logger.info("Planilha %s removida do cache.", spreadsheet_id)


def is_stale_spreadsheet_error(error: BaseException) -> bool:
    """
    Verifica se o erro indica que a planilha sumiu ou deixou de ser acessível.

    Args:
        error: Exceção levantada por uma operação na planilha.

    Returns:
        bool: True para SpreadsheetNotFound, PermissionError ou HTTP 403/404.
    """
    if isinstance(error, (SpreadsheetNotFound, PermissionError)):
        return True
    return api_status_code(error) in (403, 404)


def use_spreadsheet(
        client: Client,
        spreadsheet_id: str,
        action: Callable[[Spreadsheet], ReturnType],
) -> ReturnType:
    """
    Executa uma operação na planilha (aberta via cache).

    Se a operação indicar que a planilha foi apagada ou deixou de ser compartilhada,
    a entrada do cache é descartada antes de propagar o erro.

    Args:
        client (Client): Cliente autenticado.
        spreadsheet_id (str): ID da planilha do Google Sheets.
        action (Callable[[Spreadsheet], ReturnType]): Operação sobre a planilha.

    Returns:
        O resultado da operação.
    """
    spreadsheet = open_spreadsheet(client, spreadsheet_id)
    try:
        return action(spreadsheet)
    except Exception as e:
        if is_stale_spreadsheet_error(e):
            evict_spreadsheet(client, spreadsheet_id)
        raise
