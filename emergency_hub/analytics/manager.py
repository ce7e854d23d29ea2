import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from emergency_hub.emergencies import repository
from emergency_hub.emergencies.lifecycle import ACTIVE_STATUSES
from emergency_hub.emergencies.models import EmergencyPriority, EmergencyReport, EmergencyStatus, EmergencyType

logger = logging.getLogger("analytics.manager")

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _parse(timestamp: Optional[str]) -> Optional[datetime]:
    if not timestamp:
        return None
    parsed = datetime.fromisoformat(timestamp)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def response_minutes(report: EmergencyReport) -> Optional[float]:
    """Minutes from report creation to acknowledgement, if acknowledged."""
    if not report.acknowledged_by:
        return None
    created = _parse(report.created_at)
    acknowledged = _parse(report.acknowledged_by.timestamp)
    return max((acknowledged - created).total_seconds() / 60.0, 0.0)


def last_twelve_months(now: datetime) -> List[tuple]:
    months = []
    for offset in range(11, -1, -1):
        index = now.year * 12 + (now.month - 1) - offset
        months.append((index // 12, index % 12 + 1))
    return months


def compute_analytics(reports: List[EmergencyReport], now: Optional[datetime] = None) -> Dict:
    now = now or datetime.now(timezone.utc)
    total = len(reports)

    by_type = {t.value: 0 for t in EmergencyType}
    by_priority = {p.value: 0 for p in EmergencyPriority}
    for report in reports:
        by_type[report.type.value] += 1
        by_priority[report.priority.value] += 1

    active = sum(1 for r in reports if r.status in ACTIVE_STATUSES)
    finished = sum(1 for r in reports if r.status in (EmergencyStatus.RESOLVED, EmergencyStatus.CLOSED))

    response_times = [m for m in (response_minutes(r) for r in reports) if m is not None]
    average_response = sum(response_times) / len(response_times) if response_times else 0.0

    month_counts = {key: 0 for key in last_twelve_months(now)}
    for report in reports:
        created = _parse(report.created_at)
        key = (created.year, created.month)
        if key in month_counts:
            month_counts[key] += 1

    return {
        "total_emergencies": total,
        "emergencies_by_type": by_type,
        "emergencies_by_priority": by_priority,
        "average_response_time": round(average_response, 2),
        "resolution_rate": round(finished / total * 100, 2) if total else 0.0,
        "active_emergencies": active,
        "monthly_trends": [
            {"month": MONTH_NAMES[month - 1], "year": year, "count": count}
            for (year, month), count in month_counts.items()
        ],
    }


async def get_analytics_data() -> Dict:
    """Analytics over every report in the store"""
    reports = await repository.fetch_all_emergencies()
    data = compute_analytics(reports)
    logger.info(
        f"Analytics calculated over {data['total_emergencies']} emergencies "
        f"({data['active_emergencies']} active)"
    )
    return data
