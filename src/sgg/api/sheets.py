"""
Endpoints multifunção /api/sheets.

GET  /api/sheets?mode=search|getrow&...       : busca/coluna por query string
GET  /api/sheets?task=...&web=...&device=...  : valor de KEY_API (formato legado)
GET  /api/sheets                              : documentação
POST /api/sheets                              : busca/coluna por corpo JSON
GET  /api/sheets/{sheetId}?task=&web=&device= : valor de uma célula por igualdade exata
"""
import logging

from fastapi import APIRouter, Depends, Query
from gspread.exceptions import APIError
from pydantic import BaseModel

from .. import lookup
from ..__version__ import __version__
from ..errors import BadRequest, NotFound
from ..gateway import FULL_WIDTH, KeyRotation, is_missing_range_error, sheet_range
from ..sheets import read_grid
from .routing import GatewayRoute, get_rotation

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["sheets"], route_class=GatewayRoute)

VALID_MODES = ["search", "getrow"]


class SheetsBody(BaseModel):
    sheetId: str | None = None
    sheetName: str | None = None
    mode: str | None = None
    rowValue: str | None = None
    columnValue: str | None = None


def documentation() -> dict:
    return {
        "name": "Google Sheets API",
        "version": __version__,
        "description": "Access Google Sheets through Service Account authentication",
        "endpoints": {
            "getAPI_v1": {
                "method": "GET",
                "path": "/api/sheets?sheetId={SHEET_ID}&task=getAPI&web={SHEET_NAME}&device={DEVICE_NAME}",
                "description": "Legacy format - KEY_API from the device column, web is the sheet name",
            },
            "getAPI_v2": {
                "method": "GET",
                "path": "/api/sheets?sheetId={SHEET_ID}&task={SHEET_NAME}&web={ROW_IDENTIFIER}&device={DEVICE_NAME}",
                "description": "task is the sheet name, web is the row identifier",
            },
            "response": {"WEB": "row_identifier", "KEY_API": "api_key_value"},
            "search": {
                "method": "POST",
                "description": "Value at the intersection of a row and a column",
                "body": {
                    "sheetId": "string",
                    "sheetName": "string",
                    "mode": "search",
                    "rowValue": "string",
                    "columnValue": "string",
                },
            },
            "getColumn": {
                "method": "POST",
                "description": "Every value of a column",
                "body": {
                    "sheetId": "string",
                    "sheetName": "string",
                    "mode": "getrow",
                    "rowValue": "string - Column header name",
                },
            },
            "autoget": {
                "method": "GET",
                "path": "/api/autoget?sheetId={SHEET_ID}&sheetName={SHEET_NAME}[&reset=true]",
                "description": "Next unused row of a sheet, marked as used",
            },
        },
        "cors": "Enabled",
        "authentication": "Service Account (private sheets supported)",
    }


def _mode_result(
    rows: list[list[str]],
    sheet_name: str,
    mode: str | None,
    row_value: str | None,
    column_value: str | None,
    detailed: bool,
) -> dict:
    if mode == "search":
        if not row_value or not column_value:
            raise BadRequest(
                "Missing search parameters",
                required=["rowValue", "columnValue"],
                received={"rowValue": bool(row_value), "columnValue": bool(column_value)},
            )
        if detailed:
            return lookup.search_detailed(rows, sheet_name, row_value, column_value)
        return lookup.search_compact(rows, sheet_name, row_value, column_value)

    if mode == "getrow":
        if not row_value:
            raise BadRequest(
                "Missing column parameter",
                required=["rowValue (column header name)"],
                received={"rowValue": False},
            )
        if detailed:
            return lookup.column_detailed(rows, sheet_name, row_value)
        return lookup.column_with_ids(rows, sheet_name, row_value)

    raise BadRequest("Invalid mode", validModes=VALID_MODES, received=mode)


@router.get("/sheets")
def sheets_get(
    sheet_id: str | None = Query(None, alias="sheetId"),
    sheet_name: str | None = Query(None, alias="sheetName"),
    mode: str | None = Query(None),
    task: str | None = Query(None),
    web: str | None = Query(None),
    device: str | None = Query(None),
    row_value: str | None = Query(None, alias="rowValue"),
    column_value: str | None = Query(None, alias="columnValue"),
    rotation: KeyRotation = Depends(get_rotation),
):
    if mode and sheet_id:
        if not sheet_name:
            raise BadRequest(
                "Missing sheetName parameter for mode operation",
                required=["sheetId", "sheetName", "mode", "rowValue"],
                optional=["columnValue"],
                examples=[
                    "/api/sheets?sheetId=SHEET_ID&sheetName=WEB&mode=search&rowValue=FUN_OTP&columnValue=May1",
                    "/api/sheets?sheetId=SHEET_ID&sheetName=WEB&mode=getrow&rowValue=May1",
                ],
            )
        if mode not in VALID_MODES:
            raise BadRequest("Invalid mode", validModes=VALID_MODES, received=mode)

        rows = read_grid(rotation, sheet_id, sheet_range(sheet_name, FULL_WIDTH))
        return _mode_result(rows, sheet_name, mode, row_value, column_value, detailed=False)

    if task and sheet_id:
        if not web or not device:
            raise BadRequest(
                "Missing parameters",
                required={
                    "sheetId": "Sheet ID (query param)",
                    "task": "Task/Sheet name (query param)",
                    "web": "Row identifier (query param)",
                    "device": "Device/column name (query param)",
                },
                examples=[
                    "/api/sheets?sheetId=YOUR_SHEET_ID&task=getAPI&web=WEB&device=May1",
                    "/api/sheets?sheetId=YOUR_SHEET_ID&task=WEB&web=FUN_OTP&device=May1",
                ],
            )

        # task=getAPI: web é o nome da aba; caso contrário task é o nome da aba
        target_sheet = web if task.lower() == "getapi" else task
        logger.info("[GET API] %s/%s web=%s device=%s", sheet_id, target_sheet, web, device)

        rows = read_grid(rotation, sheet_id, sheet_range(target_sheet))
        return lookup.get_api_key(rows, target_sheet, web, device)

    return documentation()


@router.post("/sheets")
def sheets_post(body: SheetsBody, rotation: KeyRotation = Depends(get_rotation)):
    if not body.sheetId or not body.sheetName:
        raise BadRequest(
            "Missing required parameters",
            required=["sheetId", "sheetName"],
            received={"sheetId": bool(body.sheetId), "sheetName": bool(body.sheetName)},
        )
    if body.mode not in VALID_MODES:
        raise BadRequest("Invalid mode", validModes=VALID_MODES, received=body.mode)

    logger.info("[POST] Processando %s - %s/%s", body.mode, body.sheetId, body.sheetName)
    rows = read_grid(rotation, body.sheetId, sheet_range(body.sheetName, FULL_WIDTH))
    if not rows:
        raise NotFound("No data found", details="Sheet is empty or does not exist")

    return _mode_result(
        rows, body.sheetName, body.mode, body.rowValue, body.columnValue, detailed=True
    )


@router.get("/sheets/{sheet_id}")
def sheet_cell(
    sheet_id: str,
    task: str | None = Query(None),
    web: str | None = Query(None),
    device: str | None = Query(None),
    rotation: KeyRotation = Depends(get_rotation),
):
    if not task or not device:
        raise BadRequest(
            "Missing required parameters",
            required={
                "sheetId": "Sheet ID (URL path)",
                "task": "Sheet name (query param)",
                "device": "Column name (query param)",
            },
            example="/api/sheets/SHEET_ID?task=WEB&web=TOTP&device=May1",
        )

    try:
        rows = read_grid(rotation, sheet_id, sheet_range(task))
    except APIError as e:
        if not is_missing_range_error(e):
            raise
        logger.warning("Aba '%s' não encontrada na planilha %s", task, sheet_id)
        raise NotFound(
            f"Sheet '{task}' not found",
            sheetId=sheet_id,
            requestedSheet=task,
            hint="Please check if the sheet name exists in your Google Sheets document",
        )

    return lookup.lookup_cell(rows, task, web, device)
