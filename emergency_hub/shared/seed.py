import uuid
import logging

from .db import execute_query
from emergency_hub.auth.utils import hash_password

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("admin@emergencyhub.org", "Hub Admin", "+10000000001", "admin123", "admin"),
    ("responder1@emergencyhub.org", "Responder One", "+10000000002", "responder123", "responder"),
    ("responder2@emergencyhub.org", "Responder Two", "+10000000003", "responder456", "responder"),
    ("citizen@emergencyhub.org", "Public Reporter", "+10000000004", "citizen123", "public"),
]


async def is_table_empty(table_name):
    """Check if a table is empty."""
    result = await execute_query(
        f"SELECT COUNT(*) as count FROM {table_name}",
        (),
        fetch_one=True
    )
    return result and result["count"] == 0


async def seed_data():
    """Seed demo accounts into an empty users table"""
    try:
        logger.info("Starting database seeding process.")

        if not await is_table_empty("users"):
            logger.info("Users table is not empty. Skipping user seeding.")
            return

        for email, name, phone, password, role in DEMO_USERS:
            user_id = str(uuid.uuid4())
            logger.info(f"Seeding {role} user '{email}' with ID: {user_id}")
            await execute_query(
                """
                INSERT INTO users (id, email, name, phone, password_hash, role, created_at)
                VALUES ($1, $2, $3, $4, $5, $6, NOW())
                ON CONFLICT (email) DO NOTHING
                """,
                (user_id, email, name, phone, hash_password(password), role),
            )
        logger.info(f"Seeded {len(DEMO_USERS)} demo users.")
    except Exception as e:
        logger.error(f"Error seeding data: {e}")
        raise
