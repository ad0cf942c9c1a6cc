"""
Varreduras sobre a grade de strings devolvida pela API (linhas x colunas).

Todas as buscas são case-insensitive. Linhas podem ter tamanhos diferentes: a API
omite células vazias no fim da linha.
"""
from gspread.utils import rowcol_to_a1


def column_letter(index: int) -> str:
    """
    Converte um índice de coluna (0-based) na letra A1 correspondente.

    Args:
        index (int): Índice da coluna (0 = A).

    Returns:
        str: Letra(s) da coluna (A, Z, AA, ...).
    """
    return rowcol_to_a1(1, index + 1)[:-1]


def cell(rows: list[list[str]], row: int, column: int) -> str:
    """Valor da célula (0-based) ou string vazia se a linha for mais curta."""
    if row >= len(rows) or column >= len(rows[row]):
        return ""
    return rows[row][column]


def _matches(value: str, needle: str, exact: bool) -> bool:
    if not value:
        return False
    if exact:
        return value.strip().lower() == needle.strip().lower()
    return needle.lower() in value.lower()


def find_row(rows: list[list[str]], needle: str, exact: bool = False, start: int = 0) -> int:
    """
    Procura a primeira linha cuja coluna A contém (ou é igual a) um valor.

    Args:
        rows: Grade de valores.
        needle: Valor procurado.
        exact: Se True, compara o valor inteiro (ignorando espaços nas pontas).
        start: Primeira linha a considerar (0 inclui o cabeçalho).

    Returns:
        int: Índice da linha (0-based) ou -1 se não encontrada.
    """
    for index in range(start, len(rows)):
        if _matches(cell(rows, index, 0), needle, exact):
            return index
    return -1


def find_column(header: list[str], needle: str, exact: bool = False) -> int:
    """
    Procura a primeira coluna do cabeçalho que contém (ou é igual a) um valor.

    Returns:
        int: Índice da coluna (0-based) ou -1 se não encontrada.
    """
    for index, value in enumerate(header):
        if _matches(value, needle, exact):
            return index
    return -1


def find_status_column(header: list[str], default: int) -> int:
    """Coluna cujo cabeçalho contém "status", ou o índice padrão."""
    index = find_column(header, "status")
    return default if index == -1 else index


def column_values(rows: list[list[str]], index: int) -> list[str]:
    """Valores não vazios de uma coluna, abaixo do cabeçalho."""
    values = []
    for row_index in range(1, len(rows)):
        value = cell(rows, row_index, index)
        if value.strip():
            values.append(value)
    return values


def non_empty(values: list[str]) -> list[str]:
    return [value for value in values if value and value.strip()]
