from typing import Optional

import pydantic
from fastapi import APIRouter, Depends, Query

from .manager import MapBounds, get_map_markers
from emergency_hub.auth.manager import get_current_user
from emergency_hub.auth.models import Session
from emergency_hub.shared.errors import ValidationError
from emergency_hub.shared.response import success_response

router = APIRouter()


@router.get("/markers")
async def markers(
    north: Optional[float] = Query(None, ge=-90, le=90),
    south: Optional[float] = Query(None, ge=-90, le=90),
    east: Optional[float] = Query(None, ge=-180, le=180),
    west: Optional[float] = Query(None, ge=-180, le=180),
    active_only: bool = Query(False),
    session: Session = Depends(get_current_user),
):
    """Emergency locations for the map view"""
    edges = (north, south, east, west)
    bounds = None
    if any(edge is not None for edge in edges):
        if any(edge is None for edge in edges):
            raise ValidationError("Bounds need north, south, east and west")
        try:
            bounds = MapBounds(north=north, south=south, east=east, west=west)
        except pydantic.ValidationError:
            raise ValidationError("south must not exceed north")
    return success_response(await get_map_markers(bounds, active_only), "Map markers retrieved")
