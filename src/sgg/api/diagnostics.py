"""Endpoints de diagnóstico: estrutura de uma aba, abas existentes e estado da configuração."""
import logging

from fastapi import APIRouter, Depends, Query

from ..errors import BadRequest
from ..gateway import KeyRotation, sheet_range
from ..sheets import read_grid, sheet_titles
from .routing import GatewayRoute, get_rotation, require_sheet

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["diagnostics"], route_class=GatewayRoute)

DEBUG_CELLS = "A1:Z10"


@router.get("/debug")
def debug(
    sheet_id: str | None = Query(None, alias="sheetId"),
    sheet_name: str | None = Query(None, alias="sheetName"),
    rotation: KeyRotation = Depends(get_rotation),
):
    sheet_id, sheet_name = require_sheet(
        sheet_id,
        sheet_name,
        ["sheetId", "sheetName"],
        example="/api/debug?sheetId=SHEET_ID&sheetName=WEB",
    )

    rows = read_grid(rotation, sheet_id, sheet_range(sheet_name, DEBUG_CELLS))
    return {
        "sheetId": sheet_id,
        "sheetName": sheet_name,
        "totalRows": len(rows),
        "headers": rows[0] if rows else [],
        "firstFewRows": rows[:5],
        "columnA_values": [row[0] for row in rows[1:10] if row and row[0]],
    }


@router.get("/test-sheets")
def test_sheets(
    sheet_id: str | None = Query(None, alias="sheetId"),
    sheet_name: str | None = Query(None, alias="sheetName"),
    rotation: KeyRotation = Depends(get_rotation),
):
    if not sheet_id:
        raise BadRequest(
            "Missing required parameters",
            required=["sheetId"],
            example="/api/test-sheets?sheetId=SHEET_ID&sheetName=WEB",
        )

    titles = sheet_titles(rotation, sheet_id)
    result = {
        "sheetId": sheet_id,
        "availableSheets": titles,
        "totalSheets": len(titles),
    }
    if sheet_name:
        result["searchedFor"] = sheet_name
        result["exists"] = sheet_name in titles
    return result


@router.get("/test")
def ping():
    return {"message": "API is working!"}


@router.post("/test")
def configuration_report(rotation: KeyRotation = Depends(get_rotation)):
    emails = rotation.client_emails()
    logger.info("Contas de serviço configuradas: %d", rotation.key_count)
    return {
        "success": True,
        "serviceAccounts": {
            "configured": rotation.key_count,
            "clientEmails": emails,
            "currentKey": rotation.current_index + 1 if rotation.key_count else 0,
            "failureCounts": [rotation.failure_count(i) for i in range(rotation.key_count)],
        },
    }
