from fastapi import APIRouter, Depends

from .manager import get_analytics_data
from emergency_hub.auth.manager import require_operator
from emergency_hub.auth.models import Session
from emergency_hub.shared.response import success_response

router = APIRouter()


@router.get("/")
async def analytics(session: Session = Depends(require_operator)):
    """Totals, breakdowns, response time and monthly trends"""
    return success_response(await get_analytics_data(), "Analytics retrieved successfully")
