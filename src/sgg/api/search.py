"""
Busca por coordenada e leitura de coluna.

GET/POST /api/search : valor na interseção de uma linha (coluna A) e uma coluna (cabeçalho)
GET/POST /api/getrow : todos os valores não vazios de uma coluna
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from .. import lookup
from ..errors import BadRequest
from ..gateway import FULL_WIDTH, KeyRotation, sheet_range
from ..sheets import read_grid
from .routing import GatewayRoute, get_rotation, require_sheet

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["search"], route_class=GatewayRoute)

SEARCH_REQUIRED = {
    "sheetId": "Sheet ID (query param)",
    "sheetName": "Sheet name (query param)",
    "rowValue": "Row value to search (query param)",
    "columnValue": "Column value to search (query param)",
}
GETROW_REQUIRED = {
    "sheetId": "Sheet ID (query param)",
    "sheetName": "Sheet name (query param)",
    "columnName": "Column header name (query param)",
}


class SearchBody(BaseModel):
    sheetId: str | None = None
    sheetName: str | None = None
    rowValue: str | None = None
    columnValue: str | None = None


class GetRowBody(BaseModel):
    sheetId: str | None = None
    sheetName: str | None = None
    columnName: str | None = None
    rowValue: str | None = None


def _search(
    rotation: KeyRotation,
    sheet_id: str,
    sheet_name: str,
    row_value: str | None,
    column_value: str | None,
) -> dict:
    if not row_value or not column_value:
        raise BadRequest(
            "Missing search parameters",
            required=["rowValue", "columnValue"],
            description="Both rowValue and columnValue are required for search",
        )

    logger.info("[SEARCH] %s/%s linha=%s coluna=%s", sheet_id, sheet_name, row_value, column_value)
    rows = read_grid(rotation, sheet_id, sheet_range(sheet_name, FULL_WIDTH))
    return lookup.search(rows, sheet_name, row_value, column_value)


def _get_row(rotation: KeyRotation, sheet_id: str, sheet_name: str, column_name: str | None) -> dict:
    if not column_name:
        raise BadRequest(
            "Missing column name",
            required="columnName",
            description="Column header name is required to get column data",
        )

    logger.info("[GETROW] %s/%s coluna=%s", sheet_id, sheet_name, column_name)
    rows = read_grid(rotation, sheet_id, sheet_range(sheet_name, FULL_WIDTH))
    return lookup.get_column(rows, sheet_name, column_name)


@router.get("/search")
def search_get(
    sheet_id: str | None = Query(None, alias="sheetId"),
    sheet_name: str | None = Query(None, alias="sheetName"),
    row_value: str | None = Query(None, alias="rowValue"),
    column_value: str | None = Query(None, alias="columnValue"),
    rotation: KeyRotation = Depends(get_rotation),
):
    sheet_id, sheet_name = require_sheet(
        sheet_id,
        sheet_name,
        SEARCH_REQUIRED,
        example="/api/search?sheetId=SHEET_ID&sheetName=WEB&rowValue=FUN_OTP&columnValue=May1",
    )
    return _search(rotation, sheet_id, sheet_name, row_value, column_value)


@router.post("/search")
def search_post(body: SearchBody, rotation: KeyRotation = Depends(get_rotation)):
    sheet_id, sheet_name = require_sheet(
        body.sheetId, body.sheetName, ["sheetId", "sheetName", "rowValue", "columnValue"]
    )
    return _search(rotation, sheet_id, sheet_name, body.rowValue, body.columnValue)


@router.get("/getrow")
def getrow_get(
    sheet_id: str | None = Query(None, alias="sheetId"),
    sheet_name: str | None = Query(None, alias="sheetName"),
    column_name: str | None = Query(None, alias="columnName"),
    row_value: str | None = Query(None, alias="rowValue"),
    rotation: KeyRotation = Depends(get_rotation),
):
    sheet_id, sheet_name = require_sheet(
        sheet_id,
        sheet_name,
        GETROW_REQUIRED,
        example="/api/getrow?sheetId=SHEET_ID&sheetName=WEB&columnName=May1",
    )
    return _get_row(rotation, sheet_id, sheet_name, column_name or row_value)


@router.post("/getrow")
def getrow_post(body: GetRowBody, rotation: KeyRotation = Depends(get_rotation)):
    sheet_id, sheet_name = require_sheet(
        body.sheetId, body.sheetName, ["sheetId", "sheetName", "columnName or rowValue"]
    )
    return _get_row(rotation, sheet_id, sheet_name, body.columnName or body.rowValue)
