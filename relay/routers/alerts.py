"""Alert endpoints for testing Telegram alert delivery."""

from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request, status
from pydantic import BaseModel

from relay.services.alert_service import send_alert

router = APIRouter()


class AlertTestResponse(BaseModel):
    success: bool
    message: str


def _require_admin_token(expected: Optional[str], provided: Optional[str]) -> None:
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ALERTS_ADMIN_TOKEN not configured",
        )
    if not provided or provided != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")


@router.post("/alerts/test", response_model=AlertTestResponse)
async def alerts_test(request: Request, x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token")):
    _require_admin_token(request.app.state.settings.alerts_admin_token, x_admin_token)
    sent = await send_alert("INFO", "Alerts test", {"source": "alerts.test"})
    if sent:
        return AlertTestResponse(success=True, message="Alert sent")
    return AlertTestResponse(success=False, message="Alert not sent (check ALERT_BOT_TOKEN/ALERT_CHAT_ID)")
