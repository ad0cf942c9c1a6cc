"""
GET/POST /api/autoget: entrega a próxima linha não usada de uma aba e a marca como "used".

`reset=true` limpa toda a coluna de status da aba.
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..dispenser import RowDispenser
from .routing import GatewayRoute, get_dispenser, is_truthy, require_sheet

router = APIRouter(prefix="/api", tags=["autoget"], route_class=GatewayRoute)


class AutoGetBody(BaseModel):
    sheetId: str | None = None
    sheetName: str | None = None
    reset: bool | str | None = None


@router.get("/autoget")
def autoget_get(
    sheet_id: str | None = Query(None, alias="sheetId"),
    sheet_name: str | None = Query(None, alias="sheetName"),
    reset: str | None = Query(None),
    dispenser: RowDispenser = Depends(get_dispenser),
):
    sheet_id, sheet_name = require_sheet(
        sheet_id,
        sheet_name,
        {
            "sheetId": "Sheet ID (query param)",
            "sheetName": "Sheet name (query param)",
        },
        message="Missing parameters",
        examples=[
            "/api/autoget?sheetId=YOUR_SHEET_ID&sheetName=ACCOUNT",
            "/api/autoget?sheetId=YOUR_SHEET_ID&sheetName=ACCOUNT&reset=true",
        ],
    )
    return dispenser.dispense(sheet_id, sheet_name, reset=is_truthy(reset))


@router.post("/autoget")
def autoget_post(body: AutoGetBody, dispenser: RowDispenser = Depends(get_dispenser)):
    sheet_id, sheet_name = require_sheet(
        body.sheetId,
        body.sheetName,
        ["sheetId", "sheetName"],
        message="Missing sheetId or sheetName",
    )
    return dispenser.dispense(sheet_id, sheet_name, reset=is_truthy(body.reset))
