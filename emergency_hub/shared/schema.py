from .db import get_db_connection
import logging

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
    -- Users: reporters, responders and admins
    CREATE TABLE IF NOT EXISTS users (
        id UUID PRIMARY KEY,
        email VARCHAR(255) UNIQUE NOT NULL,
        name VARCHAR(100) NOT NULL,
        phone VARCHAR(32) NOT NULL,
        password_hash VARCHAR(255) NOT NULL,
        role VARCHAR(20) NOT NULL CHECK (role IN ('public', 'responder', 'admin')) DEFAULT 'public',
        location JSONB,
        created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
        last_active_at TIMESTAMP WITH TIME ZONE
    );

    -- Emergencies: one row per report; nested parts live in JSONB columns
    CREATE TABLE IF NOT EXISTS emergencies (
        id UUID PRIMARY KEY,
        type VARCHAR(32) NOT NULL CHECK (type IN ('fire', 'flood', 'armed_conflict', 'medical', 'accident', 'natural_disaster', 'other')),
        priority VARCHAR(16) NOT NULL CHECK (priority IN ('low', 'medium', 'high', 'critical')),
        status VARCHAR(16) NOT NULL CHECK (status IN ('reported', 'acknowledged', 'responding', 'resolved', 'closed')) DEFAULT 'reported',
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        location JSONB NOT NULL,
        reporter JSONB NOT NULL,
        images JSONB NOT NULL DEFAULT '[]'::jsonb,
        acknowledged_by JSONB,
        responded_by JSONB,
        resolved_by JSONB,
        closed_by JSONB,
        resolved_at TIMESTAMP WITH TIME ZONE,
        closed_at TIMESTAMP WITH TIME ZONE,
        notes JSONB NOT NULL DEFAULT '[]'::jsonb,
        version INTEGER NOT NULL DEFAULT 1,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        CHECK (created_at <= updated_at)
    );

    -- Notifications: addressed to exactly one user
    CREATE TABLE IF NOT EXISTS notifications (
        id UUID PRIMARY KEY,
        user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        message TEXT NOT NULL,
        type VARCHAR(16) NOT NULL CHECK (type IN ('emergency', 'update', 'system')) DEFAULT 'update',
        read BOOLEAN NOT NULL DEFAULT FALSE,
        data JSONB,
        created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
    );

    CREATE INDEX IF NOT EXISTS idx_emergencies_status ON emergencies (status);
    CREATE INDEX IF NOT EXISTS idx_emergencies_created_at ON emergencies (created_at DESC);
    CREATE INDEX IF NOT EXISTS idx_emergencies_reporter ON emergencies ((reporter->>'id'));
    CREATE INDEX IF NOT EXISTS idx_notifications_user_id ON notifications (user_id, created_at DESC);
"""


async def create_tables():
    """Create the users, emergencies and notifications collections"""
    try:
        async with get_db_connection() as conn:
            async with conn.transaction():
                await conn.execute(SCHEMA_SQL)
                logger.info("Database tables and indexes created successfully.")
    except Exception as e:
        logger.error(f"Error creating tables: {str(e)}")
        raise
