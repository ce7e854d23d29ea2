import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, model_validator

from emergency_hub.emergencies import repository
from emergency_hub.emergencies.lifecycle import ACTIVE_STATUSES
from emergency_hub.emergencies.models import EmergencyReport

logger = logging.getLogger("map.manager")


class MapBounds(BaseModel):
    north: float
    south: float
    east: float
    west: float

    @model_validator(mode="after")
    def south_below_north(self):
        if self.south > self.north:
            raise ValueError("south must not exceed north")
        return self

    def contains(self, latitude: float, longitude: float) -> bool:
        if not self.south <= latitude <= self.north:
            return False
        if self.west <= self.east:
            return self.west <= longitude <= self.east
        # Box crosses the antimeridian
        return longitude >= self.west or longitude <= self.east


def marker_for(report: EmergencyReport) -> Dict:
    return {
        "id": report.id,
        "type": report.type.value,
        "priority": report.priority.value,
        "status": report.status.value,
        "title": report.title,
        "latitude": report.location.latitude,
        "longitude": report.location.longitude,
        "address": report.location.address,
        "created_at": report.created_at,
    }


def build_markers(
    reports: List[EmergencyReport],
    bounds: Optional[MapBounds] = None,
    active_only: bool = False,
) -> List[Dict]:
    markers = []
    for report in reports:
        if active_only and report.status not in ACTIVE_STATUSES:
            continue
        if bounds and not bounds.contains(report.location.latitude, report.location.longitude):
            continue
        markers.append(marker_for(report))
    return markers


async def get_map_markers(bounds: Optional[MapBounds] = None, active_only: bool = False) -> List[Dict]:
    """Map markers for every report, optionally clipped to a bounding box"""
    reports = await repository.fetch_all_emergencies()
    markers = build_markers(reports, bounds, active_only)
    logger.info(f"Returning {len(markers)} of {len(reports)} emergencies as map markers")
    return markers
