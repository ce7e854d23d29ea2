import logging
from typing import Dict, List, Optional, Tuple

from .lifecycle import Transition
from .models import EmergencyReport, EmergencySubmit, Reporter
from emergency_hub.shared.db import execute_query
from emergency_hub.shared.utils import serialize_row

logger = logging.getLogger("emergencies.repository")

COLUMNS = """
    id, type, priority, status, title, description, location, reporter, images,
    acknowledged_by, responded_by, resolved_by, closed_by, resolved_at, closed_at,
    notes, version, created_at, updated_at
"""


def report_from_row(row) -> EmergencyReport:
    """Map an emergencies row onto the report model."""
    d = serialize_row(row)
    d["images"] = d.get("images") or []
    d["notes"] = d.get("notes") or []
    return EmergencyReport(**d)


async def insert_emergency(
    emergency_id: str,
    submission: EmergencySubmit,
    reporter: Reporter,
    images: List[str],
) -> EmergencyReport:
    """Create the report document in a single insert with server timestamps."""
    result = await execute_query(
        f"""
        INSERT INTO emergencies
        (id, type, priority, status, title, description, location, reporter, images,
         notes, version, created_at, updated_at)
        VALUES ($1, $2, $3, 'reported', $4, $5, $6, $7, $8, '[]'::jsonb, 1, NOW(), NOW())
        RETURNING {COLUMNS}
        """,
        (
            emergency_id,
            submission.type.value,
            submission.priority.value,
            submission.title,
            submission.description,
            submission.location.model_dump(),
            reporter.model_dump(),
            images,
        ),
        fetch_one=True
    )
    return report_from_row(result)


async def fetch_emergency(emergency_id: str) -> Optional[EmergencyReport]:
    result = await execute_query(
        f"SELECT {COLUMNS} FROM emergencies WHERE id = $1",
        (emergency_id,),
        fetch_one=True
    )
    return report_from_row(result) if result else None


async def apply_transition(
    emergency_id: str,
    transition: Transition,
    actor_id: str,
    actor_name: str,
    note: Optional[str],
    version: int,
) -> Optional[EmergencyReport]:
    """
    Write a status change, its audit stamp and the optional note in one UPDATE.

    The write only lands if the row still carries the version that was read;
    returns None when it does not.
    """
    completed_at = f"{transition.completed_at_column} = NOW()," if transition.completed_at_column else ""
    result = await execute_query(
        f"""
        UPDATE emergencies
        SET status = $1,
            {transition.stamp_column} = jsonb_build_object('id', $2::text, 'name', $3::text, 'timestamp', NOW()),
            {completed_at}
            notes = CASE WHEN $4::text IS NULL THEN notes
                    ELSE notes || jsonb_build_array(jsonb_build_object(
                        'text', $4::text, 'user_id', $2::text, 'user_name', $3::text,
                        'action', $5::text, 'timestamp', NOW()))
                    END,
            updated_at = NOW(),
            version = version + 1
        WHERE id = $6 AND version = $7
        RETURNING {COLUMNS}
        """,
        (
            transition.target.value,
            actor_id,
            actor_name,
            note,
            transition.past_tense,
            emergency_id,
            version,
        ),
        fetch_one=True
    )
    return report_from_row(result) if result else None


def _build_conditions(filters: Dict) -> Tuple[List[str], List]:
    conditions = []
    params = []
    for column in ("status", "type", "priority"):
        if filters.get(column):
            params.append(filters[column])
            conditions.append(f"{column} = ${len(params)}")
    if filters.get("reporter_id"):
        params.append(filters["reporter_id"])
        conditions.append(f"reporter->>'id' = ${len(params)}")
    if filters.get("search"):
        params.append(f"%{filters['search']}%")
        conditions.append(f"(title ILIKE ${len(params)} OR description ILIKE ${len(params)})")
    return conditions, params


async def list_emergencies(filters: Dict, page: int = 1, page_size: int = 10) -> Tuple[List[EmergencyReport], int]:
    """Newest-first page of reports matching filters, plus the total match count."""
    conditions, params = _build_conditions(filters)
    where_clause = (" WHERE " + " AND ".join(conditions)) if conditions else ""
    offset = (page - 1) * page_size

    rows = await execute_query(
        f"SELECT {COLUMNS} FROM emergencies{where_clause} "
        f"ORDER BY created_at DESC LIMIT {int(page_size)} OFFSET {int(offset)}",
        tuple(params),
    )
    count = await execute_query(
        f"SELECT COUNT(*) AS count FROM emergencies{where_clause}",
        tuple(params),
        fetch_one=True
    )
    total = count["count"] if count else 0
    return [report_from_row(r) for r in rows], total


async def fetch_all_emergencies() -> List[EmergencyReport]:
    rows = await execute_query(f"SELECT {COLUMNS} FROM emergencies ORDER BY created_at DESC")
    return [report_from_row(r) for r in rows]


async def count_by_status() -> Dict[str, int]:
    rows = await execute_query("SELECT status, COUNT(*) AS count FROM emergencies GROUP BY status")
    return {row["status"]: row["count"] for row in rows}
