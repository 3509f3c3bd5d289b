from __future__ import annotations

import responses

from whs_backoffice.app import BackofficeApp
from whs_client_sdk.auth_store import AuthStore
from whs_client_sdk.config import load_config
from whs_client_sdk.session import ApiSession

BASE = "https://api.example.com"


def _app(http, tmp_path) -> BackofficeApp:
    config = load_config()
    session = ApiSession(config=config, auth_store=AuthStore(base_dir=tmp_path), http=http)
    return BackofficeApp(config=config, session=session)


def test_start_without_session(http, tmp_path) -> None:
    result = _app(http, tmp_path).start()
    assert result.ok is False
    assert result.error_message == "No active session"


@responses.activate
def test_login_builds_navigation_from_role(http, tmp_path) -> None:
    responses.add(
        responses.POST,
        f"{BASE}/login",
        json={
            "status": "success",
            "data": {
                "token": "tok",
                "user": {
                    "id": 1,
                    "role": {"name": "Clerk", "permissions": [{"key": "can_view_dispatch_menu"}, {"key": "can_view_breakages"}]},
                },
            },
        },
    )
    app = _app(http, tmp_path)

    result = app.login("clerk@example.com", "pw")

    assert result.ok
    assert result.modules == ["Dispatches", "Breakages"]
    assert app.dispatch_list().can_view()
    assert not app.product_list().can_view()

    app.logout()
    assert app.visible_navigation() == []
    assert app.session.token is None


@responses.activate
def test_failed_login_reports_message(http, tmp_path) -> None:
    responses.add(responses.POST, f"{BASE}/login", json={"message": "Invalid credentials"}, status=401)
    result = _app(http, tmp_path).login("x@example.com", "bad")
    assert result.ok is False
    assert result.error_message == "Invalid credentials"


def test_views_share_one_notification_center(http, tmp_path) -> None:
    app = _app(http, tmp_path)
    assert app.dispatch_detail().notifications is app.breakage_form().notifications
    assert app.product_list().debounce_ms == app.config.search_debounce_ms
