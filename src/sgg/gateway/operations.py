import logging

from gspread import Spreadsheet

from ._retry import retry


logger = logging.getLogger(__name__)

# Intervalo padrão de leitura de uma aba inteira (colunas A até ZZZ)
FULL_WIDTH = "A:ZZZ"

MISSING_RANGE_MARKERS = (
    "unable to parse range",
    "not found",
    "does not exist",
)


def sheet_range(sheet_name: str, cells: str | None = None) -> str:
    """
    Monta uma referência A1 para uma aba, escapando o nome da aba.

    Args:
        sheet_name (str): Nome da aba.
        cells (str | None): Intervalo dentro da aba (ex.: "A:C"). None endereça a aba inteira.

    Returns:
        str: Referência no formato 'Aba'!A:C.
    """
    quoted = "'" + sheet_name.replace("'", "''") + "'"
    if not cells:
        return quoted
    return f"{quoted}!{cells}"


def is_missing_range_error(error: BaseException) -> bool:
    """
    Verifica se o erro da API indica que a aba/intervalo pedido não existe.

    Args:
        error: Exceção levantada pela API.

    Returns:
        bool: True se a mensagem indica aba inexistente.
    """
    text = str(error).lower()
    return any(marker in text for marker in MISSING_RANGE_MARKERS)


def get_values(
        spreadsheet: Spreadsheet,
        range_name: str,
) -> list[list[str]]:
    """
    Lê os valores de um intervalo (values.get) como uma grade de strings.

    Args:
        spreadsheet (Spreadsheet): Planilha onde o intervalo será lido.
        range_name (str): Referência A1 do intervalo.

    Returns:
        list[list[str]]: Linhas lidas. Linhas podem ter tamanhos diferentes;
            intervalo vazio retorna lista vazia.
    """
    logger.debug("Lendo intervalo %s", range_name)

    response = retry(lambda: spreadsheet.values_get(range_name))
    rows = response.get("values", []) if response else []

    grid = [["" if cell is None else str(cell) for cell in row] for row in rows]

    logger.debug("%d linhas lidas do intervalo %s", len(grid), range_name)
    return grid


def update_values(
        spreadsheet: Spreadsheet,
        range_name: str,
        values: list[list[str]],
) -> None:
    """
    Escreve valores em um intervalo (values.update) sem interpretação (RAW).

    Args:
        spreadsheet (Spreadsheet): Planilha onde o intervalo será escrito.
        range_name (str): Referência A1 do intervalo.
        values (list[list[str]]): Grade de valores a escrever.
    """
    logger.debug("Escrevendo %d linhas no intervalo %s", len(values), range_name)

    retry(
        lambda: spreadsheet.values_update(
            range_name,
            params={"valueInputOption": "RAW"},
            body={"values": values},
        )
    )

    logger.debug("Intervalo %s atualizado com sucesso.", range_name)


def list_sheet_titles(spreadsheet: Spreadsheet) -> list[str]:
    """
    Lista os nomes das abas de uma planilha.

    Args:
        spreadsheet (Spreadsheet): Planilha a ser inspecionada.

    Returns:
        list[str]: Títulos das abas, na ordem da planilha.
    """
    worksheets = retry(lambda: spreadsheet.worksheets())
    return [worksheet.title for worksheet in worksheets]
