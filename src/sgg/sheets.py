"""Leituras e escritas em planilhas passando pela rotação de contas de serviço."""
import logging

from .gateway import (
    KeyRotation,
    get_values,
    list_sheet_titles,
    update_values,
    use_spreadsheet,
)

logger = logging.getLogger(__name__)


def read_grid(rotation: KeyRotation, spreadsheet_id: str, range_name: str) -> list[list[str]]:
    """
    Lê um intervalo com a chave atual, trocando de chave em erros de cota.

    Args:
        rotation (KeyRotation): Política de rotação compartilhada.
        spreadsheet_id (str): ID da planilha.
        range_name (str): Referência A1 do intervalo.

    Returns:
        list[list[str]]: Grade lida.
    """
    return rotation.execute(
        lambda client: use_spreadsheet(
            client, spreadsheet_id, lambda spreadsheet: get_values(spreadsheet, range_name)
        )
    )


def write_grid(
    rotation: KeyRotation,
    spreadsheet_id: str,
    range_name: str,
    values: list[list[str]],
) -> None:
    """Escreve um intervalo com a chave atual, trocando de chave em erros de cota."""
    rotation.execute(
        lambda client: use_spreadsheet(
            client,
            spreadsheet_id,
            lambda spreadsheet: update_values(spreadsheet, range_name, values),
        )
    )


def sheet_titles(rotation: KeyRotation, spreadsheet_id: str) -> list[str]:
    """Nomes das abas de uma planilha."""
    return rotation.execute(
        lambda client: use_spreadsheet(client, spreadsheet_id, list_sheet_titles)
    )
