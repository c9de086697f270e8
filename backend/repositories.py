from __future__ import annotations

import json
from datetime import date, datetime
from uuid import uuid4

from sqlalchemy import text as sql_text, bindparam

from backend.db import get_sessionmaker
from backend.db_init import (
    PROFILES_TABLE,
    CLIENTS_INFO_TABLE,
    CLIENT_COACHES_TABLE,
    PLANS_TABLE,
    CONTENT_TABLE,
    ASSIGNMENTS_TABLE,
    COMPLETIONS_TABLE,
    BOARD_POSTS_TABLE,
    RULES_TABLE,
    ALERT_SETTINGS_TABLE,
    PUSH_SUBSCRIPTIONS_TABLE,
)
from backend.plans import latest_plan_end

PROFILE_COLUMNS = "id, email, full_name, role, avatar_url, created_at"
PLAN_COLUMNS = "id, coach_id, client_id, name, description, start_date, end_date, created_at"
CONTENT_COLUMNS = "id, coach_id, type, title, description, link, thumbnail_url, created_at"
ASSIGNMENT_COLUMNS = (
    "id, coach_id, client_id, content_id, title, description, link, thumbnail_url, "
    "type, completed, scheduled_date, plan_id, created_at"
)
POST_COLUMNS = "id, coach_id, title, content, image_url, target_client_ids_json, expires_at, created_at"
RULE_COLUMNS = "id, coach_id, client_id, scheduled_time, message, created_at"

ASSIGNMENT_TYPES = {"pdf", "video", "habit"}
CONTENT_TYPES = {"pdf", "video", "habit", "post"}


def _new_id() -> str:
    return uuid4().hex


def _now_iso() -> str:
    return datetime.utcnow().isoformat()


def _iso(value):
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _loads(raw, default):
    if raw in (None, ""):
        return default
    if isinstance(raw, (list, dict)):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


def _normalize_row(row) -> dict:
    if not row:
        return {}
    payload = {key: _iso(value) for key, value in dict(row).items()}
    if "completed" in payload:
        payload["completed"] = bool(int(payload.get("completed") or 0))
    if "is_enabled" in payload:
        payload["is_enabled"] = bool(int(payload.get("is_enabled") or 0))
    if "target_client_ids_json" in payload:
        targets = _loads(payload.pop("target_client_ids_json"), None)
        payload["target_client_ids"] = targets if isinstance(targets, list) else None
    if "alert_times_json" in payload:
        times = _loads(payload.pop("alert_times_json"), [])
        payload["alert_times"] = times if isinstance(times, list) else []
    if "subscription_json" in payload:
        payload["subscription"] = _loads(payload.pop("subscription_json"), {})
    return payload


def _update_clause(patch: dict, allowed: set[str]) -> tuple[list[str], dict]:
    updates = []
    params = {}
    for key, value in patch.items():
        if key not in allowed:
            continue
        updates.append(f"{key} = :{key}")
        params[key] = _iso(value)
    return updates, params


async def _fetch_all(query: str, params: dict | None = None, expanding: tuple[str, ...] = ()) -> list[dict]:
    stmt = sql_text(query)
    if expanding:
        stmt = stmt.bindparams(*[bindparam(name, expanding=True) for name in expanding])
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(stmt, params or {})).mappings().all()
    return [_normalize_row(row) for row in rows]


async def _fetch_one(query: str, params: dict | None = None) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(sql_text(query), params or {})).mappings().fetchone()
    return _normalize_row(row) if row else None


async def _execute(query: str, params: dict | None = None, expanding: tuple[str, ...] = ()) -> int:
    stmt = sql_text(query)
    if expanding:
        stmt = stmt.bindparams(*[bindparam(name, expanding=True) for name in expanding])
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(stmt, params or {})
        await session.commit()
    return int(result.rowcount or 0)


# --- profiles -----------------------------------------------------------------


async def get_profile(user_id: str) -> dict | None:
    return await _fetch_one(
        f"SELECT {PROFILE_COLUMNS} FROM {PROFILES_TABLE} WHERE id = :id",
        {"id": user_id},
    )


async def get_profiles(user_ids: list[str]) -> dict[str, dict]:
    if not user_ids:
        return {}
    rows = await _fetch_all(
        f"SELECT {PROFILE_COLUMNS} FROM {PROFILES_TABLE} WHERE id IN :ids",
        {"ids": list(user_ids)},
        expanding=("ids",),
    )
    return {row["id"]: row for row in rows}


async def get_profile_by_email(email: str) -> dict | None:
    return await _fetch_one(
        f"SELECT {PROFILE_COLUMNS} FROM {PROFILES_TABLE} WHERE LOWER(email) = :email",
        {"email": (email or "").strip().lower()},
    )


async def update_profile(user_id: str, patch: dict) -> dict | None:
    updates, params = _update_clause(patch, {"full_name", "avatar_url", "email"})
    if updates:
        params["id"] = user_id
        await _execute(f"UPDATE {PROFILES_TABLE} SET {', '.join(updates)} WHERE id = :id", params)
    return await get_profile(user_id)


async def list_profiles_by_role(role: str) -> list[dict]:
    return await _fetch_all(
        f"SELECT {PROFILE_COLUMNS} FROM {PROFILES_TABLE} WHERE role = :role ORDER BY created_at DESC",
        {"role": role},
    )


async def count_profiles(role: str) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        count = (await session.execute(
            sql_text(f"SELECT COUNT(*) FROM {PROFILES_TABLE} WHERE role = :role"),
            {"role": role},
        )).scalar_one()
    return int(count or 0)


async def delete_profile(user_id: str) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"DELETE FROM {CLIENT_COACHES_TABLE} WHERE client_id = :id OR coach_id = :id"),
            {"id": user_id},
        )
        await session.execute(sql_text(f"DELETE FROM {CLIENTS_INFO_TABLE} WHERE id = :id"), {"id": user_id})
        await session.execute(sql_text(f"DELETE FROM {PROFILES_TABLE} WHERE id = :id"), {"id": user_id})
        await session.commit()


async def search_coaches(query: str, exclude_id: str | None, limit: int = 10) -> list[dict]:
    params = {"role": "coach", "exclude_id": exclude_id or "", "limit": limit}
    name_filter = ""
    if query:
        name_filter = "AND LOWER(COALESCE(full_name, '')) LIKE :pattern"
        params["pattern"] = f"%{query.strip().lower()}%"
    return await _fetch_all(
        f"""
        SELECT id, full_name, email, avatar_url
        FROM {PROFILES_TABLE}
        WHERE role = :role AND id != :exclude_id {name_filter}
        ORDER BY full_name
        LIMIT :limit
        """,
        params,
    )


# --- clients ------------------------------------------------------------------


async def get_client_info(client_id: str) -> dict | None:
    return await _fetch_one(
        f"SELECT id, coach_id, created_at FROM {CLIENTS_INFO_TABLE} WHERE id = :id",
        {"id": client_id},
    )


async def ensure_client_info(client_id: str, coach_id: str) -> None:
    await _execute(
        f"""
        INSERT INTO {CLIENTS_INFO_TABLE} (id, coach_id, created_at)
        VALUES (:id, :coach_id, :created_at)
        ON CONFLICT(id) DO NOTHING
        """,
        {"id": client_id, "coach_id": coach_id, "created_at": _now_iso()},
    )


async def list_coach_clients(coach_id: str) -> list[dict]:
    rows = await _fetch_all(
        f"""
        SELECT p.id, p.email, p.full_name, p.avatar_url, p.role, ci.created_at AS info_created_at
        FROM {CLIENT_COACHES_TABLE} cc
        JOIN {PROFILES_TABLE} p ON p.id = cc.client_id
        LEFT JOIN {CLIENTS_INFO_TABLE} ci ON ci.id = p.id
        WHERE cc.coach_id = :coach_id
        ORDER BY p.full_name
        """,
        {"coach_id": coach_id},
    )
    if not rows:
        return []
    plans = await _fetch_all(
        f"SELECT client_id, end_date FROM {PLANS_TABLE} WHERE client_id IN :ids",
        {"ids": [row["id"] for row in rows]},
        expanding=("ids",),
    )
    plans_by_client: dict[str, list[dict]] = {}
    for plan in plans:
        plans_by_client.setdefault(plan["client_id"], []).append(plan)
    clients = []
    for row in rows:
        created_at = row.pop("info_created_at", None)
        clients.append(
            {
                "id": row["id"],
                "coach_id": coach_id,
                "created_at": created_at,
                "profiles": {**row, "created_at": created_at},
                "subscription_end": latest_plan_end(plans_by_client.get(row["id"], [])),
            }
        )
    return clients


async def is_coach_of(coach_id: str, client_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        count = (await session.execute(
            sql_text(
                f"""
                SELECT
                    (SELECT COUNT(*) FROM {CLIENT_COACHES_TABLE} WHERE coach_id = :coach_id AND client_id = :client_id)
                    + (SELECT COUNT(*) FROM {CLIENTS_INFO_TABLE} WHERE coach_id = :coach_id AND id = :client_id)
                """
            ),
            {"coach_id": coach_id, "client_id": client_id},
        )).scalar_one()
    return int(count or 0) > 0


async def link_colleague(client_id: str, coach_id: str) -> None:
    await _execute(
        f"""
        INSERT INTO {CLIENT_COACHES_TABLE} (client_id, coach_id, created_at)
        VALUES (:client_id, :coach_id, :created_at)
        ON CONFLICT(client_id, coach_id) DO NOTHING
        """,
        {"client_id": client_id, "coach_id": coach_id, "created_at": _now_iso()},
    )


async def unlink_colleague(client_id: str, coach_id: str) -> None:
    await _execute(
        f"DELETE FROM {CLIENT_COACHES_TABLE} WHERE client_id = :client_id AND coach_id = :coach_id",
        {"client_id": client_id, "coach_id": coach_id},
    )


async def list_client_coaches(client_id: str) -> list[dict]:
    return await _fetch_all(
        f"""
        SELECT p.id, p.full_name, p.email, p.avatar_url
        FROM {CLIENT_COACHES_TABLE} cc
        JOIN {PROFILES_TABLE} p ON p.id = cc.coach_id
        WHERE cc.client_id = :client_id
        """,
        {"client_id": client_id},
    )


async def list_linked_client_ids(coach_id: str) -> list[str]:
    rows = await _fetch_all(
        f"SELECT client_id FROM {CLIENT_COACHES_TABLE} WHERE coach_id = :coach_id",
        {"coach_id": coach_id},
    )
    return [row["client_id"] for row in rows]


async def list_primary_client_ids(coach_id: str) -> list[str]:
    rows = await _fetch_all(
        f"SELECT id FROM {CLIENTS_INFO_TABLE} WHERE coach_id = :coach_id",
        {"coach_id": coach_id},
    )
    return [row["id"] for row in rows]


async def list_client_coach_names() -> dict[str, str]:
    rows = await _fetch_all(
        f"""
        SELECT cc.client_id, p.full_name
        FROM {CLIENT_COACHES_TABLE} cc
        JOIN {PROFILES_TABLE} p ON p.id = cc.coach_id
        ORDER BY cc.created_at
        """
    )
    names: dict[str, str] = {}
    for row in rows:
        names.setdefault(row["client_id"], row.get("full_name") or "")
    return names


# --- subscription plans -------------------------------------------------------


async def _hydrate_plan_coaches(plans: list[dict]) -> list[dict]:
    coaches = await get_profiles(sorted({plan["coach_id"] for plan in plans if plan.get("coach_id")}))
    for plan in plans:
        coach = coaches.get(plan.get("coach_id"))
        plan["coach"] = {"id": coach["id"], "full_name": coach.get("full_name")} if coach else None
    return plans


async def list_plans(client_id: str | None = None, coach_id: str | None = None) -> list[dict]:
    filters = []
    params: dict = {}
    if client_id:
        filters.append("client_id = :client_id")
        params["client_id"] = client_id
    if coach_id:
        filters.append("coach_id = :coach_id")
        params["coach_id"] = coach_id
    where = f"WHERE {' AND '.join(filters)}" if filters else ""
    plans = await _fetch_all(
        f"SELECT {PLAN_COLUMNS} FROM {PLANS_TABLE} {where} ORDER BY created_at DESC",
        params,
    )
    return await _hydrate_plan_coaches(plans)


async def list_active_plans(client_id: str, today_iso: str) -> list[dict]:
    plans = await _fetch_all(
        f"""
        SELECT {PLAN_COLUMNS} FROM {PLANS_TABLE}
        WHERE client_id = :client_id
          AND start_date IS NOT NULL AND end_date IS NOT NULL
          AND SUBSTR(start_date, 1, 10) <= :today
          AND SUBSTR(end_date, 1, 10) >= :today
        ORDER BY created_at DESC
        """,
        {"client_id": client_id, "today": today_iso},
    )
    return await _hydrate_plan_coaches(plans)


async def get_plan(plan_id: str) -> dict | None:
    return await _fetch_one(f"SELECT {PLAN_COLUMNS} FROM {PLANS_TABLE} WHERE id = :id", {"id": plan_id})


async def create_plan(coach_id: str, payload: dict) -> dict:
    record = {
        "id": _new_id(),
        "coach_id": coach_id,
        "client_id": payload["client_id"],
        "name": payload["name"],
        "description": payload.get("description"),
        "start_date": _iso(payload.get("start_date")),
        "end_date": _iso(payload.get("end_date")),
        "created_at": _now_iso(),
    }
    await _execute(
        f"""
        INSERT INTO {PLANS_TABLE} ({PLAN_COLUMNS})
        VALUES (:id, :coach_id, :client_id, :name, :description, :start_date, :end_date, :created_at)
        """,
        record,
    )
    return (await _hydrate_plan_coaches([record]))[0]


async def update_plan(plan_id: str, coach_id: str, patch: dict) -> dict | None:
    updates, params = _update_clause(patch, {"name", "description", "start_date", "end_date", "client_id"})
    if updates:
        params.update({"id": plan_id, "coach_id": coach_id})
        updated = await _execute(
            f"UPDATE {PLANS_TABLE} SET {', '.join(updates)} WHERE id = :id AND coach_id = :coach_id",
            params,
        )
        if not updated:
            return None
    plan = await get_plan(plan_id)
    if not plan or plan.get("coach_id") != coach_id:
        return None
    return (await _hydrate_plan_coaches([plan]))[0]


async def delete_plan(plan_id: str, coach_id: str) -> bool:
    deleted = await _execute(
        f"DELETE FROM {PLANS_TABLE} WHERE id = :id AND coach_id = :coach_id",
        {"id": plan_id, "coach_id": coach_id},
    )
    return deleted > 0


async def count_active_plans(today_iso: str) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        count = (await session.execute(
            sql_text(f"SELECT COUNT(*) FROM {PLANS_TABLE} WHERE SUBSTR(end_date, 1, 10) >= :today"),
            {"today": today_iso},
        )).scalar_one()
    return int(count or 0)


# --- content library ----------------------------------------------------------


async def list_content(coach_id: str | None = None) -> list[dict]:
    params: dict = {}
    where = ""
    if coach_id:
        where = "WHERE c.coach_id = :coach_id"
        params["coach_id"] = coach_id
    return await _fetch_all(
        f"""
        SELECT c.id, c.coach_id, c.type, c.title, c.description, c.link, c.thumbnail_url, c.created_at,
               p.full_name AS coach_name
        FROM {CONTENT_TABLE} c
        LEFT JOIN {PROFILES_TABLE} p ON p.id = c.coach_id
        {where}
        ORDER BY c.created_at DESC
        """,
        params,
    )


async def get_content(content_id: str) -> dict | None:
    return await _fetch_one(f"SELECT {CONTENT_COLUMNS} FROM {CONTENT_TABLE} WHERE id = :id", {"id": content_id})


async def add_content(coach_id: str, payload: dict) -> dict:
    content_type = payload.get("type")
    if content_type not in CONTENT_TYPES:
        raise ValueError("Invalid content type")
    title = (payload.get("title") or "").strip()
    if not title:
        raise ValueError("Title cannot be empty")
    record = {
        "id": _new_id(),
        "coach_id": coach_id,
        "type": content_type,
        "title": title,
        "description": payload.get("description"),
        "link": payload.get("link"),
        "thumbnail_url": payload.get("thumbnail_url"),
        "created_at": _now_iso(),
    }
    await _execute(
        f"""
        INSERT INTO {CONTENT_TABLE} ({CONTENT_COLUMNS})
        VALUES (:id, :coach_id, :type, :title, :description, :link, :thumbnail_url, :created_at)
        """,
        record,
    )
    return record


async def update_content(content_id: str, patch: dict) -> dict | None:
    if "type" in patch and patch["type"] not in CONTENT_TYPES:
        raise ValueError("Invalid content type")
    updates, params = _update_clause(patch, {"type", "title", "description", "link", "thumbnail_url"})
    if updates:
        params["id"] = content_id
        await _execute(f"UPDATE {CONTENT_TABLE} SET {', '.join(updates)} WHERE id = :id", params)
    return await get_content(content_id)


async def delete_content(content_id: str) -> None:
    await _execute(f"DELETE FROM {CONTENT_TABLE} WHERE id = :id", {"id": content_id})


async def count_assignments_for_content(content_id: str) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        count = (await session.execute(
            sql_text(f"SELECT COUNT(*) FROM {ASSIGNMENTS_TABLE} WHERE content_id = :content_id"),
            {"content_id": content_id},
        )).scalar_one()
    return int(count or 0)


# --- assignments --------------------------------------------------------------


async def list_assignments(client_id: str, plan_id: str | None) -> list[dict]:
    params = {"client_id": client_id}
    if plan_id:
        plan_filter = "AND plan_id = :plan_id"
        params["plan_id"] = plan_id
    else:
        plan_filter = "AND plan_id IS NULL"
    return await _fetch_all(
        f"""
        SELECT {ASSIGNMENT_COLUMNS} FROM {ASSIGNMENTS_TABLE}
        WHERE client_id = :client_id {plan_filter}
        ORDER BY scheduled_date ASC
        """,
        params,
    )


async def list_client_assignments(client_id: str, assignment_type: str | None = None) -> list[dict]:
    params = {"client_id": client_id}
    type_filter = ""
    if assignment_type:
        type_filter = "AND type = :type"
        params["type"] = assignment_type
    return await _fetch_all(
        f"""
        SELECT {ASSIGNMENT_COLUMNS} FROM {ASSIGNMENTS_TABLE}
        WHERE client_id = :client_id {type_filter}
        ORDER BY scheduled_date DESC
        """,
        params,
    )


async def list_upcoming_assignments(client_id: str, today_iso: str) -> list[dict]:
    return await _fetch_all(
        f"""
        SELECT {ASSIGNMENT_COLUMNS} FROM {ASSIGNMENTS_TABLE}
        WHERE client_id = :client_id AND scheduled_date >= :today
        ORDER BY scheduled_date ASC
        """,
        {"client_id": client_id, "today": today_iso},
    )


async def list_assignment_meta(client_id: str) -> list[dict]:
    return await _fetch_all(
        f"SELECT id, plan_id, type, completed, content_id FROM {ASSIGNMENTS_TABLE} WHERE client_id = :client_id",
        {"client_id": client_id},
    )


async def get_assignment(assignment_id: str) -> dict | None:
    return await _fetch_one(
        f"SELECT {ASSIGNMENT_COLUMNS} FROM {ASSIGNMENTS_TABLE} WHERE id = :id",
        {"id": assignment_id},
    )


async def create_assignment(coach_id: str, client_id: str, plan_id: str | None, payload: dict) -> dict:
    assignment_type = payload.get("type")
    if assignment_type not in ASSIGNMENT_TYPES:
        raise ValueError("Invalid assignment type")
    title = (payload.get("title") or "").strip()
    if not title:
        raise ValueError("Title cannot be empty")
    if not payload.get("scheduled_date"):
        raise ValueError("Scheduled date is required")
    record = {
        "id": _new_id(),
        "coach_id": coach_id,
        "client_id": client_id,
        "content_id": payload.get("content_id"),
        "title": title,
        "description": payload.get("description"),
        "link": payload.get("link"),
        "thumbnail_url": payload.get("thumbnail_url"),
        "type": assignment_type,
        "completed": int(bool(payload.get("completed", False))),
        "scheduled_date": _iso(payload.get("scheduled_date")),
        "plan_id": plan_id or None,
        "created_at": _now_iso(),
    }
    await _execute(
        f"""
        INSERT INTO {ASSIGNMENTS_TABLE} ({ASSIGNMENT_COLUMNS})
        VALUES (:id, :coach_id, :client_id, :content_id, :title, :description, :link, :thumbnail_url,
                :type, :completed, :scheduled_date, :plan_id, :created_at)
        """,
        record,
    )
    stored = await _fetch_one(
        f"SELECT {PUSH_SUBSCRIPTION_COLUMNS} FROM {PUSH_SUBSCRIPTIONS_TABLE} WHERE user_id = :user_id AND endpoint = :endpoint",
        {"user_id": user_id, "endpoint": endpoint},
    )
    return stored or _normalize_row(record)


async def update_assignment(assignment_id: str, patch: dict) -> dict | None:
    if "type" in patch and patch["type"] not in ASSIGNMENT_TYPES:
        raise ValueError("Invalid assignment type")
    clean = dict(patch)
    if "completed" in clean:
        clean["completed"] = int(bool(clean["completed"]))
    updates, params = _update_clause(
        clean,
        {"title", "description", "link", "thumbnail_url", "type", "completed", "scheduled_date", "content_id"},
    )
    if updates:
        params["id"] = assignment_id
        await _execute(f"UPDATE {ASSIGNMENTS_TABLE} SET {', '.join(updates)} WHERE id = :id", params)
    return await get_assignment(assignment_id)


async def delete_assignment(assignment_id: str) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"DELETE FROM {COMPLETIONS_TABLE} WHERE assignment_id = :id"),
            {"id": assignment_id},
        )
        await session.execute(sql_text(f"DELETE FROM {ASSIGNMENTS_TABLE} WHERE id = :id"), {"id": assignment_id})
        await session.commit()


async def set_assignment_completed(assignment_id: str, client_id: str, completed: bool) -> bool:
    updated = await _execute(
        f"UPDATE {ASSIGNMENTS_TABLE} SET completed = :completed WHERE id = :id AND client_id = :client_id",
        {"id": assignment_id, "client_id": client_id, "completed": int(bool(completed))},
    )
    return updated > 0


# --- daily completions --------------------------------------------------------


async def list_completions(client_id: str, start_iso: str, end_iso: str) -> list[dict]:
    return await _fetch_all(
        f"""
        SELECT id, client_id, assignment_id, completed_date, created_at
        FROM {COMPLETIONS_TABLE}
        WHERE client_id = :client_id
          AND completed_date BETWEEN :start_date AND :end_date
        ORDER BY completed_date ASC
        """,
        {"client_id": client_id, "start_date": start_iso, "end_date": end_iso},
    )


async def get_completion(client_id: str, assignment_id: str, day_iso: str) -> dict | None:
    return await _fetch_one(
        f"""
        SELECT id, client_id, assignment_id, completed_date, created_at
        FROM {COMPLETIONS_TABLE}
        WHERE client_id = :client_id AND assignment_id = :assignment_id AND completed_date = :day
        """,
        {"client_id": client_id, "assignment_id": assignment_id, "day": day_iso},
    )


async def add_completion(client_id: str, assignment_id: str, day_iso: str) -> dict:
    record = {
        "id": _new_id(),
        "client_id": client_id,
        "assignment_id": assignment_id,
        "completed_date": day_iso,
        "created_at": _now_iso(),
    }
    await _execute(
        f"""
        INSERT INTO {COMPLETIONS_TABLE} (id, client_id, assignment_id, completed_date, created_at)
        VALUES (:id, :client_id, :assignment_id, :completed_date, :created_at)
        """,
        record,
    )
    return record


async def delete_completion(completion_id: str, client_id: str) -> None:
    await _execute(
        f"DELETE FROM {COMPLETIONS_TABLE} WHERE id = :id AND client_id = :client_id",
        {"id": completion_id, "client_id": client_id},
    )


async def toggle_completion(client_id: str, assignment_id: str, day_iso: str) -> bool:
    existing = await get_completion(client_id, assignment_id, day_iso)
    if existing:
        await delete_completion(existing["id"], client_id)
        return False
    await add_completion(client_id, assignment_id, day_iso)
    return True


# --- board posts --------------------------------------------------------------


async def _hydrate_post_coaches(posts: list[dict]) -> list[dict]:
    coaches = await get_profiles(sorted({post["coach_id"] for post in posts if post.get("coach_id")}))
    for post in posts:
        coach = coaches.get(post.get("coach_id"))
        post["coach"] = (
            {"full_name": coach.get("full_name"), "avatar_url": coach.get("avatar_url")} if coach else None
        )
    return posts


async def list_board_posts_for_coach(coach_id: str) -> list[dict]:
    posts = await _fetch_all(
        f"SELECT {POST_COLUMNS} FROM {BOARD_POSTS_TABLE} WHERE coach_id = :coach_id ORDER BY created_at DESC",
        {"coach_id": coach_id},
    )
    return await _hydrate_post_coaches(posts)


async def list_board_posts_for_client(client_id: str) -> list[dict]:
    posts = await _fetch_all(
        f"""
        SELECT {POST_COLUMNS} FROM {BOARD_POSTS_TABLE}
        WHERE target_client_ids_json LIKE :pattern
        ORDER BY created_at DESC
        """,
        {"pattern": f'%"{client_id}"%'},
    )
    posts = [post for post in posts if client_id in (post.get("target_client_ids") or [])]
    return await _hydrate_post_coaches(posts)


async def list_active_posts_for_coaches(coach_ids: list[str], now_iso: str) -> list[dict]:
    if not coach_ids:
        return []
    posts = await _fetch_all(
        f"""
        SELECT {POST_COLUMNS} FROM {BOARD_POSTS_TABLE}
        WHERE coach_id IN :coach_ids AND expires_at >= :now
        ORDER BY created_at DESC
        """,
        {"coach_ids": list(coach_ids), "now": now_iso},
        expanding=("coach_ids",),
    )
    return await _hydrate_post_coaches(posts)


async def create_board_post(coach_id: str, payload: dict) -> dict:
    title = (payload.get("title") or "").strip()
    if not title:
        raise ValueError("Title cannot be empty")
    targets = payload.get("target_client_ids")
    record = {
        "id": _new_id(),
        "coach_id": coach_id,
        "title": title,
        "content": payload.get("content") or "",
        "image_url": payload.get("image_url"),
        "target_client_ids_json": json.dumps(list(targets)) if targets is not None else None,
        "expires_at": _iso(payload.get("expires_at")),
        "created_at": _now_iso(),
    }
    await _execute(
        f"""
        INSERT INTO {BOARD_POSTS_TABLE} ({POST_COLUMNS})
        VALUES (:id, :coach_id, :title, :content, :image_url, :target_client_ids_json, :expires_at, :created_at)
        """,
        record,
    )
    return _normalize_row(record)


async def update_board_post(post_id: str, coach_id: str, patch: dict) -> dict | None:
    clean = dict(patch)
    if "target_client_ids" in clean:
        targets = clean.pop("target_client_ids")
        clean["target_client_ids_json"] = json.dumps(list(targets)) if targets is not None else None
    updates, params = _update_clause(
        clean, {"title", "content", "image_url", "target_client_ids_json", "expires_at"}
    )
    params.update({"id": post_id, "coach_id": coach_id})
    if updates:
        updated = await _execute(
            f"UPDATE {BOARD_POSTS_TABLE} SET {', '.join(updates)} WHERE id = :id AND coach_id = :coach_id",
            params,
        )
        if not updated:
            return None
    return await _fetch_one(
        f"SELECT {POST_COLUMNS} FROM {BOARD_POSTS_TABLE} WHERE id = :id AND coach_id = :coach_id",
        {"id": post_id, "coach_id": coach_id},
    )


async def delete_board_post(post_id: str, coach_id: str) -> bool:
    deleted = await _execute(
        f"DELETE FROM {BOARD_POSTS_TABLE} WHERE id = :id AND coach_id = :coach_id",
        {"id": post_id, "coach_id": coach_id},
    )
    return deleted > 0


# --- notification rules -------------------------------------------------------


async def list_rules(coach_id: str, client_id: str | None = None) -> list[dict]:
    params = {"coach_id": coach_id}
    if client_id:
        client_filter = "AND client_id = :client_id"
        params["client_id"] = client_id
    else:
        client_filter = "AND client_id IS NULL"
    return await _fetch_all(
        f"""
        SELECT {RULE_COLUMNS} FROM {RULES_TABLE}
        WHERE coach_id = :coach_id {client_filter}
        ORDER BY scheduled_time
        """,
        params,
    )


async def list_rules_at(time_str: str) -> list[dict]:
    return await _fetch_all(
        f"SELECT {RULE_COLUMNS} FROM {RULES_TABLE} WHERE scheduled_time = :time",
        {"time": time_str},
    )


async def create_rule(coach_id: str, client_id: str | None, scheduled_time: str, message: str) -> dict:
    record = {
        "id": _new_id(),
        "coach_id": coach_id,
        "client_id": client_id,
        "scheduled_time": scheduled_time,
        "message": message,
        "created_at": _now_iso(),
    }
    await _execute(
        f"""
        INSERT INTO {RULES_TABLE} ({RULE_COLUMNS})
        VALUES (:id, :coach_id, :client_id, :scheduled_time, :message, :created_at)
        """,
        record,
    )
    return record


async def update_rule(rule_id: str, coach_id: str, scheduled_time: str, message: str) -> dict | None:
    updated = await _execute(
        f"""
        UPDATE {RULES_TABLE} SET scheduled_time = :scheduled_time, message = :message
        WHERE id = :id AND coach_id = :coach_id
        """,
        {"id": rule_id, "coach_id": coach_id, "scheduled_time": scheduled_time, "message": message},
    )
    if not updated:
        return None
    return await _fetch_one(f"SELECT {RULE_COLUMNS} FROM {RULES_TABLE} WHERE id = :id", {"id": rule_id})


async def delete_rule(rule_id: str, coach_id: str) -> bool:
    deleted = await _execute(
        f"DELETE FROM {RULES_TABLE} WHERE id = :id AND coach_id = :coach_id",
        {"id": rule_id, "coach_id": coach_id},
    )
    return deleted > 0


# --- alert settings -----------------------------------------------------------


async def get_alert_settings(user_id: str) -> dict | None:
    return await _fetch_one(
        f"SELECT user_id, role, is_enabled, alert_times_json, updated_at FROM {ALERT_SETTINGS_TABLE} WHERE user_id = :user_id",
        {"user_id": user_id},
    )


async def upsert_alert_settings(user_id: str, role: str | None, is_enabled: bool, alert_times: list[str] | None = None) -> dict:
    existing = await get_alert_settings(user_id)
    if alert_times is None:
        alert_times = (existing or {}).get("alert_times") or []
    record = {
        "user_id": user_id,
        "role": role,
        "is_enabled": int(bool(is_enabled)),
        "alert_times_json": json.dumps(list(alert_times)),
        "updated_at": _now_iso(),
    }
    await _execute(
        f"""
        INSERT INTO {ALERT_SETTINGS_TABLE} (user_id, role, is_enabled, alert_times_json, updated_at)
        VALUES (:user_id, :role, :is_enabled, :alert_times_json, :updated_at)
        ON CONFLICT(user_id) DO UPDATE SET
            role = EXCLUDED.role,
            is_enabled = EXCLUDED.is_enabled,
            alert_times_json = EXCLUDED.alert_times_json,
            updated_at = EXCLUDED.updated_at
        """,
        record,
    )
    return _normalize_row(record)


async def list_enabled_alert_settings() -> list[dict]:
    return await _fetch_all(
        f"SELECT user_id, role, is_enabled, alert_times_json, updated_at FROM {ALERT_SETTINGS_TABLE} WHERE is_enabled = 1"
    )


async def filter_alerts_enabled(user_ids: list[str]) -> list[str]:
    if not user_ids:
        return []
    rows = await _fetch_all(
        f"SELECT user_id FROM {ALERT_SETTINGS_TABLE} WHERE user_id IN :ids AND is_enabled = 1",
        {"ids": list(user_ids)},
        expanding=("ids",),
    )
    return [row["user_id"] for row in rows]


# --- push subscriptions -------------------------------------------------------


PUSH_SUBSCRIPTION_COLUMNS = "id, user_id, endpoint, subscription_json, user_agent, created_at"


async def save_push_subscription(user_id: str, subscription: dict, user_agent: str | None) -> dict:
    endpoint = (subscription or {}).get("endpoint")
    if not endpoint:
        raise ValueError("Subscription endpoint is required")
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "endpoint": endpoint,
        "subscription_json": json.dumps(subscription),
        "user_agent": user_agent,
        "created_at": _now_iso(),
    }
    await _execute(
        f"""
        INSERT INTO {PUSH_SUBSCRIPTIONS_TABLE} (id, user_id, endpoint, subscription_json, user_agent, created_at)
        VALUES (:id, :user_id, :endpoint, :subscription_json, :user_agent, :created_at)
        ON CONFLICT(user_id, endpoint) DO UPDATE SET
            subscription_json = EXCLUDED.subscription_json,
            user_agent = EXCLUDED.user_agent
        """,
        record,
    )
    stored = await _fetch_one(
        f"SELECT {PUSH_SUBSCRIPTION_COLUMNS} FROM {PUSH_SUBSCRIPTIONS_TABLE} "
        "WHERE user_id = :user_id AND endpoint = :endpoint",
        {"user_id": user_id, "endpoint": endpoint},
    )
    return stored or _normalize_row(record)


async def delete_push_subscription_by_endpoint(user_id: str, endpoint: str) -> int:
    return await _execute(
        f"DELETE FROM {PUSH_SUBSCRIPTIONS_TABLE} WHERE user_id = :user_id AND endpoint = :endpoint",
        {"user_id": user_id, "endpoint": endpoint},
    )


async def delete_push_subscription(subscription_id: str) -> None:
    await _execute(f"DELETE FROM {PUSH_SUBSCRIPTIONS_TABLE} WHERE id = :id", {"id": subscription_id})


async def list_push_subscriptions(user_ids: list[str] | None = None) -> list[dict]:
    if user_ids is None:
        return await _fetch_all(f"SELECT {PUSH_SUBSCRIPTION_COLUMNS} FROM {PUSH_SUBSCRIPTIONS_TABLE}")
    if not user_ids:
        return []
    return await _fetch_all(
        f"SELECT {PUSH_SUBSCRIPTION_COLUMNS} FROM {PUSH_SUBSCRIPTIONS_TABLE} WHERE user_id IN :ids",
        {"ids": list(user_ids)},
        expanding=("ids",),
    )
