from datetime import date

from dashboard.data import api_client


def _iso(value):
    if isinstance(value, date):
        return value.isoformat()
    return value


def _items(payload):
    return (payload or {}).get("items", [])


# session / account

def sign_in(email, password):
    return api_client.request("POST", "/v1/session/sign-in", json={"email": email, "password": password}, auth=False)


def sign_out():
    return api_client.request("POST", "/v1/session/sign-out")


def send_password_reset(email):
    return api_client.request("POST", "/v1/session/reset-password", json={"email": email}, auth=False)


def get_session_state():
    return api_client.request("GET", "/v1/session")


def update_profile(patch):
    return api_client.request("PATCH", "/v1/profile", json=patch)


def upload_avatar(filename, data, content_type=None):
    return api_client.request("POST", "/v1/profile/avatar", files={"file": (filename, data, content_type)})


def change_password(current_password, new_password):
    return api_client.request(
        "PUT", "/v1/account/password", json={"current_password": current_password, "new_password": new_password}
    )


def recover_password(access_token, new_password):
    return api_client.request(
        "POST", "/v1/account/recover-password", json={"new_password": new_password}, token=access_token
    )


def change_email(email):
    return api_client.request("PUT", "/v1/account/email", json={"email": email})


# client views

def get_client_dashboard(plan_id="all"):
    return api_client.request("GET", "/v1/dashboard", params={"plan_id": plan_id})


def list_client_assignments(assignment_type=None, plan_id="all"):
    params = {"plan_id": plan_id}
    if assignment_type:
        params["type"] = assignment_type
    return _items(api_client.request("GET", "/v1/assignments", params=params))


def toggle_assignment(assignment_id, current):
    return api_client.request("POST", f"/v1/assignments/{assignment_id}/toggle", json={"current": bool(current)})


def get_habits_overview(day, plan_id="all", days=90):
    return api_client.request("GET", "/v1/habits", params={"day": _iso(day), "plan_id": plan_id, "days": days})


def toggle_completion(assignment_id, day):
    return api_client.request("POST", "/v1/completions/toggle", json={"assignment_id": assignment_id, "day": _iso(day)})


# coach views

def get_coach_dashboard():
    return api_client.request("GET", "/v1/coach/dashboard")


def list_coach_clients():
    return api_client.request("GET", "/v1/coach/clients")


def create_client(email, full_name):
    return api_client.request("POST", "/v1/coach/clients", json={"email": email, "full_name": full_name})


def get_client_detail(client_id):
    return api_client.request("GET", f"/v1/coach/clients/{client_id}")


def delete_client(client_id):
    return api_client.request("DELETE", f"/v1/coach/clients/{client_id}")


def link_colleague(client_id, coach_id):
    return api_client.request("POST", f"/v1/coach/clients/{client_id}/coaches", json={"coach_id": coach_id})


def unlink_colleague(client_id, coach_id):
    return api_client.request("DELETE", f"/v1/coach/clients/{client_id}/coaches/{coach_id}")


def search_coaches(query):
    return _items(api_client.request("GET", "/v1/coach/coaches/search", params={"q": query}))


def create_plan(payload):
    return api_client.request("POST", "/v1/coach/plans", json=payload)


def update_plan(plan_id, patch):
    return api_client.request("PATCH", f"/v1/coach/plans/{plan_id}", json=patch)


def delete_plan(plan_id):
    return api_client.request("DELETE", f"/v1/coach/plans/{plan_id}")


def list_assignments(client_id, plan_id=None):
    params = {"plan_id": plan_id} if plan_id else None
    return _items(api_client.request("GET", f"/v1/coach/clients/{client_id}/assignments", params=params))


def create_assignment(client_id, payload):
    return api_client.request("POST", f"/v1/coach/clients/{client_id}/assignments", json=payload)


def update_assignment(assignment_id, patch):
    return api_client.request("PATCH", f"/v1/coach/assignments/{assignment_id}", json=patch)


def delete_assignment(assignment_id):
    return api_client.request("DELETE", f"/v1/coach/assignments/{assignment_id}")


def list_client_completions(client_id, start, end):
    return api_client.request(
        "GET", f"/v1/coach/clients/{client_id}/completions", params={"start": _iso(start), "end": _iso(end)}
    )


def list_library():
    return _items(api_client.request("GET", "/v1/coach/library"))


def add_content(payload):
    return api_client.request("POST", "/v1/coach/library", json=payload)


def update_content(content_id, patch):
    return api_client.request("PATCH", f"/v1/coach/library/{content_id}", json=patch)


def delete_content(content_id):
    return api_client.request("DELETE", f"/v1/coach/library/{content_id}")


def upload_file(filename, data, content_type=None, folder="uploads"):
    payload = api_client.request(
        "POST", "/v1/uploads", files={"file": (filename, data, content_type)}, data={"folder": folder}, timeout=60
    )
    return (payload or {}).get("url")


def list_coach_board():
    return _items(api_client.request("GET", "/v1/coach/board"))


def create_board_post(payload):
    return api_client.request("POST", "/v1/coach/board", json=payload)


def update_board_post(post_id, patch):
    return api_client.request("PATCH", f"/v1/coach/board/{post_id}", json=patch)


def delete_board_post(post_id):
    return api_client.request("DELETE", f"/v1/coach/board/{post_id}")


def list_rules(client_id=None):
    params = {"client_id": client_id} if client_id else None
    return _items(api_client.request("GET", "/v1/coach/notification-rules", params=params))


def create_rule(scheduled_time, message, client_id=None):
    return api_client.request(
        "POST",
        "/v1/coach/notification-rules",
        json={"scheduled_time": scheduled_time, "message": message, "client_id": client_id},
    )


def update_rule(rule_id, scheduled_time, message):
    return api_client.request(
        "PUT", f"/v1/coach/notification-rules/{rule_id}", json={"scheduled_time": scheduled_time, "message": message}
    )


def delete_rule(rule_id):
    return api_client.request("DELETE", f"/v1/coach/notification-rules/{rule_id}")


# notifications

def get_alert_settings():
    return api_client.request("GET", "/v1/alert-settings")


def set_alert_settings(is_enabled, alert_times=None):
    return api_client.request("PUT", "/v1/alert-settings", json={"is_enabled": bool(is_enabled), "alert_times": alert_times})


def send_test_notification():
    return api_client.request("POST", "/v1/push-subscriptions/test")


# admin

def get_admin_stats():
    return api_client.request("GET", "/v1/admin/stats")


def list_admin(kind):
    return _items(api_client.request("GET", f"/v1/admin/{kind}"))


def create_coach(email, full_name, password):
    return api_client.request("POST", "/v1/admin/coaches", json={"email": email, "full_name": full_name, "password": password})


def delete_admin_item(kind, item_id):
    return api_client.request("DELETE", f"/v1/admin/{kind}/{item_id}")


def get_system_stats():
    return api_client.request("GET", "/v1/system/stats")
