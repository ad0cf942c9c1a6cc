"""
Consultas somente-leitura sobre uma grade já lida da planilha.

Cada função recebe as linhas (a primeira é o cabeçalho) e devolve o corpo da
resposta JSON, ou levanta NotFound com o corpo de erro correspondente.
"""
from datetime import datetime, timezone

from . import grid
from .errors import NotFound


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_rows(rows: list[list[str]], message: str = "No data found in sheet") -> list[str]:
    if not rows:
        raise NotFound(message)
    return rows[0]


def locate(
    rows: list[list[str]],
    sheet_name: str,
    row_value: str,
    column_value: str,
) -> tuple[int, int]:
    """
    Encontra a célula na interseção de uma linha (coluna A) e uma coluna (cabeçalho).

    A busca da linha começa no próprio cabeçalho; ambas as buscas são por trecho,
    sem diferenciar maiúsculas.

    Returns:
        tuple[int, int]: (linha, coluna), ambos 0-based.
    """
    header = _require_rows(rows)
    found_row = grid.find_row(rows, row_value)
    found_column = grid.find_column(header, column_value)

    if found_row == -1:
        raise NotFound(
            f"Row not found: {row_value}",
            sheetName=sheet_name,
            searchedValue=row_value,
        )
    if found_column == -1:
        raise NotFound(
            f"Column not found: {column_value}",
            sheetName=sheet_name,
            searchedValue=column_value,
            availableColumns=grid.non_empty(header)[:10],
        )
    return found_row, found_column


def search(rows: list[list[str]], sheet_name: str, row_value: str, column_value: str) -> dict:
    """Busca por coordenada (/api/search)."""
    row, column = locate(rows, sheet_name, row_value, column_value)
    letter = grid.column_letter(column)
    return {
        "success": True,
        "coordinate": f"{letter}{row + 1}",
        "value": grid.cell(rows, row, column),
        "rowHeader": grid.cell(rows, row, 0),
        "columnHeader": grid.cell(rows, 0, column),
        "rowNumber": row + 1,
        "columnLetter": letter,
        "sheetName": sheet_name,
    }


def search_compact(rows: list[list[str]], sheet_name: str, row_value: str, column_value: str) -> dict:
    """Busca por coordenada no formato de GET /api/sheets?mode=search."""
    row, column = locate(rows, sheet_name, row_value, column_value)
    letter = grid.column_letter(column)
    return {
        "success": True,
        "coordinate": f"{letter}{row + 1}",
        "value": grid.cell(rows, row, column),
        "rowHeader": grid.cell(rows, row, 0),
        "columnHeader": grid.cell(rows, 0, column),
        "sheetName": sheet_name,
    }


def search_detailed(rows: list[list[str]], sheet_name: str, row_value: str, column_value: str) -> dict:
    """Busca por coordenada no formato de POST /api/sheets (mode=search)."""
    row, column = locate(rows, sheet_name, row_value, column_value)
    return {
        "success": True,
        "mode": "search",
        "data": {
            "value": grid.cell(rows, row, column),
            "row": row + 1,
            "column": grid.column_letter(column),
            "rowHeader": grid.cell(rows, row, 0),
            "columnHeader": grid.cell(rows, 0, column),
        },
        "timestamp": _timestamp(),
    }


def get_column(rows: list[list[str]], sheet_name: str, column_name: str) -> dict:
    """
    Valores não vazios de uma coluna (/api/getrow).

    O cabeçalho é encontrado por trecho, sem diferenciar maiúsculas.
    """
    header = _require_rows(rows)
    column = grid.find_column(header, column_name)
    if column == -1:
        raise NotFound(
            f"Column not found: {column_name}",
            sheetName=sheet_name,
            searchedColumn=column_name,
            availableColumns=grid.non_empty(header)[:15],
        )

    return {
        "status": "success",
        "column": header[column],
        "values": grid.column_values(rows, column),
    }


def column_detailed(rows: list[list[str]], sheet_name: str, column_name: str) -> dict:
    """Coluna inteira com números de linha, no formato de POST /api/sheets (mode=getrow)."""
    header = _require_rows(rows)
    column = grid.find_column(header, column_name, exact=True)
    if column == -1:
        raise NotFound(f"Column header not found: {column_name}", sheetName=sheet_name)

    data = [
        {"row": row + 1, "value": grid.cell(rows, row, column)}
        for row in range(1, len(rows))
        if grid.cell(rows, row, column)
    ]
    return {
        "success": True,
        "mode": "getColumn",
        "data": {
            "columnHeader": header[column],
            "columnIndex": column + 1,
            "columnLetter": grid.column_letter(column),
            "totalValues": len(data),
            "data": data,
        },
        "timestamp": _timestamp(),
    }


def column_with_ids(rows: list[list[str]], sheet_name: str, column_name: str) -> dict:
    """Coluna com o identificador (coluna A) de cada linha, para GET /api/sheets?mode=getrow."""
    header = _require_rows(rows)
    column = grid.find_column(header, column_name)
    if column == -1:
        raise NotFound(f"Column not found: {column_name}", sheetName=sheet_name)

    data = []
    for row in range(1, len(rows)):
        value = grid.cell(rows, row, column)
        row_id = grid.cell(rows, row, 0)
        if value or row_id:
            data.append({"row": row + 1, "rowId": row_id, "value": value})

    return {
        "success": True,
        "columnHeader": header[column],
        "columnLetter": grid.column_letter(column),
        "data": data,
        "totalRows": len(data),
        "sheetName": sheet_name,
    }


def get_api_key(rows: list[list[str]], sheet_name: str, web: str, device: str) -> dict:
    """
    Valor da coluna do dispositivo na linha identificada por `web` (formato legado "task").

    Se a linha não existir, devolve o primeiro valor não vazio da coluna.
    """
    header = _require_rows(rows, f"Sheet '{sheet_name}' is empty or not found")
    column = grid.find_column(header, device, exact=True)
    if column == -1:
        raise NotFound(f"Device '{device}' not found in sheet '{sheet_name}'")

    row = grid.find_row(rows, web, exact=True, start=1)
    if row != -1:
        value = grid.cell(rows, row, column)
    else:
        value = next((v.strip() for v in grid.column_values(rows, column)), "")

    return {"WEB": web, "KEY_API": value}


def lookup_cell(rows: list[list[str]], sheet_name: str, web: str | None, device: str) -> dict:
    """
    Valor da célula na linha `web` e coluna `device`, ambos por igualdade exata
    (sem diferenciar maiúsculas, ignorando espaços nas pontas).
    """
    header = _require_rows(rows)
    column = grid.find_column(header, device, exact=True)
    if column == -1:
        available = [h for h in header if h.strip()]
        raise NotFound(
            "Fail",
            sheetName=sheet_name,
            searchedColumn=device,
            totalColumns=len(header),
            totalNonEmptyColumns=len(available),
            availableColumns=available,
        )

    row = grid.find_row(rows, web, exact=True, start=1) if web else -1
    if row == -1:
        raise NotFound(
            f"Row not found: {web}",
            sheetName=sheet_name,
            searchedRow=web,
            availableRows=grid.non_empty([grid.cell(rows, i, 0) for i in range(1, min(len(rows), 11))]),
        )

    return {
        "status": "success",
        "web": web or "",
        "value": grid.cell(rows, row, column),
    }
