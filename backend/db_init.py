from __future__ import annotations

import logging

from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from backend.db import get_engine

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
CLIENTS_INFO_TABLE = "clients_info"
CLIENT_COACHES_TABLE = "client_coaches"
PLANS_TABLE = "subscription_plans"
CONTENT_TABLE = "content_library"
ASSIGNMENTS_TABLE = "assignments"
COMPLETIONS_TABLE = "daily_completions"
BOARD_POSTS_TABLE = "board_posts"
RULES_TABLE = "notification_rules"
ALERT_SETTINGS_TABLE = "alert_settings"
PUSH_SUBSCRIPTIONS_TABLE = "push_subscriptions"


TABLE_DDL = {
    PROFILES_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {PROFILES_TABLE} (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL,
            full_name TEXT,
            role TEXT NOT NULL DEFAULT 'client',
            avatar_url TEXT,
            created_at TEXT NOT NULL
        )
    """,
    CLIENTS_INFO_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {CLIENTS_INFO_TABLE} (
            id TEXT PRIMARY KEY,
            coach_id TEXT,
            created_at TEXT NOT NULL
        )
    """,
    CLIENT_COACHES_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {CLIENT_COACHES_TABLE} (
            client_id TEXT NOT NULL,
            coach_id TEXT NOT NULL,
            created_at TEXT,
            PRIMARY KEY (client_id, coach_id)
        )
    """,
    PLANS_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {PLANS_TABLE} (
            id TEXT PRIMARY KEY,
            coach_id TEXT NOT NULL,
            client_id TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            start_date TEXT,
            end_date TEXT,
            created_at TEXT NOT NULL
        )
    """,
    CONTENT_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {CONTENT_TABLE} (
            id TEXT PRIMARY KEY,
            coach_id TEXT NOT NULL,
            type TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT,
            link TEXT,
            thumbnail_url TEXT,
            created_at TEXT NOT NULL
        )
    """,
    ASSIGNMENTS_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {ASSIGNMENTS_TABLE} (
            id TEXT PRIMARY KEY,
            coach_id TEXT NOT NULL,
            client_id TEXT NOT NULL,
            content_id TEXT,
            title TEXT NOT NULL,
            description TEXT,
            link TEXT,
            thumbnail_url TEXT,
            type TEXT NOT NULL,
            completed INTEGER DEFAULT 0,
            scheduled_date TEXT NOT NULL,
            plan_id TEXT,
            created_at TEXT NOT NULL
        )
    """,
    COMPLETIONS_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {COMPLETIONS_TABLE} (
            id TEXT PRIMARY KEY,
            client_id TEXT NOT NULL,
            assignment_id TEXT NOT NULL,
            completed_date TEXT NOT NULL,
            created_at TEXT NOT NULL,
            UNIQUE (client_id, assignment_id, completed_date)
        )
    """,
    BOARD_POSTS_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {BOARD_POSTS_TABLE} (
            id TEXT PRIMARY KEY,
            coach_id TEXT NOT NULL,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            image_url TEXT,
            target_client_ids_json TEXT,
            expires_at TEXT,
            created_at TEXT NOT NULL
        )
    """,
    RULES_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {RULES_TABLE} (
            id TEXT PRIMARY KEY,
            coach_id TEXT NOT NULL,
            client_id TEXT,
            scheduled_time TEXT NOT NULL,
            message TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
    """,
    ALERT_SETTINGS_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {ALERT_SETTINGS_TABLE} (
            user_id TEXT PRIMARY KEY,
            role TEXT,
            is_enabled INTEGER DEFAULT 1,
            alert_times_json TEXT,
            updated_at TEXT
        )
    """,
    PUSH_SUBSCRIPTIONS_TABLE: f"""
        CREATE TABLE IF NOT EXISTS {PUSH_SUBSCRIPTIONS_TABLE} (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            endpoint TEXT NOT NULL,
            subscription_json TEXT NOT NULL,
            user_agent TEXT,
            created_at TEXT NOT NULL
        )
    """,
}

INDEXES = [
    f"CREATE INDEX IF NOT EXISTS idx_{PLANS_TABLE}_client_dates ON {PLANS_TABLE} (client_id, start_date, end_date)",
    f"CREATE INDEX IF NOT EXISTS idx_{ASSIGNMENTS_TABLE}_client_date ON {ASSIGNMENTS_TABLE} (client_id, scheduled_date)",
    f"CREATE INDEX IF NOT EXISTS idx_{COMPLETIONS_TABLE}_client_date ON {COMPLETIONS_TABLE} (client_id, completed_date)",
    f"CREATE INDEX IF NOT EXISTS idx_{BOARD_POSTS_TABLE}_coach ON {BOARD_POSTS_TABLE} (coach_id, created_at)",
    f"CREATE INDEX IF NOT EXISTS idx_{RULES_TABLE}_time ON {RULES_TABLE} (scheduled_time)",
    f"CREATE UNIQUE INDEX IF NOT EXISTS idx_{PUSH_SUBSCRIPTIONS_TABLE}_endpoint "
    f"ON {PUSH_SUBSCRIPTIONS_TABLE} (user_id, endpoint)",
]


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        for ddl in TABLE_DDL.values():
            await conn.execute(sql_text(ddl))

    async def ensure_index(index_sql: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(sql_text(index_sql))
        except SQLAlchemyError as exc:
            logger.warning("Skipping index: %s", exc)

    for index_sql in INDEXES:
        await ensure_index(index_sql)
