"""
AuthGateway Tests
"""

import asyncio
import logging
import pytest
from types import SimpleNamespace

from supabase import AuthApiError, AuthSessionMissingError

from app.config import settings
from app.core.errors import BackendError, SessionMissingError
from tests.conftest import make_row, make_user


class TestLoadUser:
    @pytest.mark.asyncio
    async def test_sets_principal_from_session(self, auth_gateway, fake_supabase, store):
        fake_supabase.auth.get_user.return_value = SimpleNamespace(user=make_user("u1"))

        await auth_gateway.load_user()

        assert store.auth.user.id == "u1"
        assert store.auth.loading is False

    @pytest.mark.asyncio
    async def test_missing_session_is_silent(self, auth_gateway, fake_supabase, store, caplog):
        store.auth.set_user(make_user("stale"))
        fake_supabase.auth.get_user.side_effect = AuthSessionMissingError()

        with caplog.at_level(logging.DEBUG):
            await auth_gateway.load_user()

        assert store.auth.user is None
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]

    @pytest.mark.asyncio
    async def test_none_response_counts_as_missing_session(self, auth_gateway, store, caplog):
        await auth_gateway.load_user()

        assert store.auth.user is None
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]

    @pytest.mark.asyncio
    async def test_other_failures_are_logged_and_clear(self, auth_gateway, fake_supabase, store, caplog):
        store.auth.set_user(make_user("stale"))
        fake_supabase.auth.get_user.side_effect = ConnectionError("network down")

        await auth_gateway.load_user()

        assert store.auth.user is None
        assert store.auth.loading is False
        assert any("Error loading user" in r.getMessage() for r in caplog.records)


class TestSignIn:
    @pytest.mark.asyncio
    async def test_success_sets_principal(self, auth_gateway, fake_supabase, store):
        response = SimpleNamespace(user=make_user("u1"), session=SimpleNamespace(access_token="t"))
        fake_supabase.auth.sign_in_with_password.return_value = response

        result = await auth_gateway.sign_in("user@example.com", "secret")

        assert result.ok
        assert result.data is response
        assert store.auth.user.id == "u1"
        fake_supabase.auth.sign_in_with_password.assert_awaited_once_with(
            {"email": "user@example.com", "password": "secret"}
        )

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_principal(self, auth_gateway, fake_supabase, store):
        store.auth.set_user(make_user("previous"))
        fake_supabase.auth.sign_in_with_password.side_effect = AuthApiError(
            "Invalid login credentials", 400, "invalid_credentials"
        )

        result = await auth_gateway.sign_in("user@example.com", "wrong")

        assert result.data is None
        assert isinstance(result.error, BackendError)
        assert result.error.message == "Invalid login credentials"
        assert store.auth.user.id == "previous"
        assert store.auth.loading is False

    @pytest.mark.asyncio
    async def test_loading_flag_while_pending(self, auth_gateway, fake_supabase, store):
        release = asyncio.Event()

        async def slow_sign_in(credentials):
            await release.wait()
            return SimpleNamespace(user=make_user("u1"), session=None)

        fake_supabase.auth.sign_in_with_password.side_effect = slow_sign_in

        task = asyncio.create_task(auth_gateway.sign_in("user@example.com", "secret"))
        await asyncio.sleep(0)
        assert store.auth.loading is True

        release.set()
        await task
        assert store.auth.loading is False


class TestSignUp:
    @pytest.mark.asyncio
    async def test_success_sets_principal(self, auth_gateway, fake_supabase, store):
        fake_supabase.auth.sign_up.return_value = SimpleNamespace(user=make_user("new"), session=None)

        result = await auth_gateway.sign_up("new@example.com", "secret")

        assert result.error is None
        assert store.auth.user.id == "new"

    @pytest.mark.asyncio
    async def test_failure_returns_error(self, auth_gateway, fake_supabase, store):
        fake_supabase.auth.sign_up.side_effect = RuntimeError("User already registered")

        result = await auth_gateway.sign_up("new@example.com", "secret")

        assert result.data is None
        assert "already registered" in result.error.message
        assert isinstance(result.error.__cause__, RuntimeError)
        assert store.auth.user is None


class TestSignOut:
    @pytest.mark.asyncio
    async def test_clears_principal(self, auth_gateway, store):
        store.auth.set_user(make_user("u1"))

        result = await auth_gateway.sign_out()

        assert result.error is None
        assert store.auth.user is None

    @pytest.mark.asyncio
    async def test_idempotent_without_principal(self, auth_gateway, store):
        result = await auth_gateway.sign_out()

        assert result.error is None
        assert store.auth.user is None
        assert store.auth.loading is False

    @pytest.mark.asyncio
    async def test_failure_keeps_principal(self, auth_gateway, fake_supabase, store):
        store.auth.set_user(make_user("u1"))
        fake_supabase.auth.sign_out.side_effect = ConnectionError("timeout")

        result = await auth_gateway.sign_out()

        assert isinstance(result.error, BackendError)
        assert store.auth.user.id == "u1"


class TestOAuth:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,provider", [
        ("sign_in_with_google", "google"),
        ("sign_in_with_github", "github"),
    ])
    async def test_starts_redirect_without_setting_principal(
        self, auth_gateway, fake_supabase, store, method, provider
    ):
        response = SimpleNamespace(provider=provider, url=f"https://auth.example.com/{provider}")
        fake_supabase.auth.sign_in_with_oauth.return_value = response

        result = await getattr(auth_gateway, method)()

        assert result.data is response
        assert store.auth.user is None
        fake_supabase.auth.sign_in_with_oauth.assert_awaited_once_with({
            "provider": provider,
            "options": {"redirect_to": settings.oauth_redirect_url},
        })

    @pytest.mark.asyncio
    async def test_failure_returns_error(self, auth_gateway, fake_supabase, store):
        fake_supabase.auth.sign_in_with_oauth.side_effect = RuntimeError("provider disabled")

        result = await auth_gateway.sign_in_with_github()

        assert result.data is None
        assert result.error.message == "provider disabled"
        assert store.auth.loading is False


class TestSessionEvents:
    def test_subscribes_on_construction(self, auth_gateway, fake_supabase):
        fake_supabase.auth.on_auth_state_change.assert_called_once()

    def test_event_overwrites_principal(self, auth_gateway, fake_supabase, store):
        fake_supabase.emit("SIGNED_IN", SimpleNamespace(user=make_user("oauth-user")))
        assert store.auth.user.id == "oauth-user"

        fake_supabase.emit("SIGNED_OUT", None)
        assert store.auth.user is None

    @pytest.mark.asyncio
    async def test_code_exchange_sets_principal_through_event(self, auth_gateway, fake_supabase, store):
        session = SimpleNamespace(user=make_user("oauth-user"))

        async def exchange(params):
            fake_supabase.emit("SIGNED_IN", session)
            return SimpleNamespace(user=session.user, session=session)

        fake_supabase.auth.exchange_code_for_session.side_effect = exchange

        result = await auth_gateway.exchange_code("abc")

        assert result.ok
        assert store.auth.user.id == "oauth-user"


def test_session_missing_error_message():
    assert SessionMissingError("load_user").message == "Auth session missing!"


class TestPrincipalSwitch:
    @pytest.mark.asyncio
    async def test_sign_out_then_new_user_sees_no_cached_rows(
        self, auth_gateway, subscriptions_gateway, fake_supabase, store
    ):
        fake_supabase.tables["subscriptions"] = [make_row("s1", user_id="u1")]
        store.auth.set_user(make_user("u1"))
        await subscriptions_gateway.fetch_subscriptions()
        assert len(store.subscriptions.subscriptions) == 1

        await auth_gateway.sign_out()
        assert store.subscriptions.subscriptions == ()

        fake_supabase.emit("SIGNED_IN", SimpleNamespace(user=make_user("u2")))
        assert store.auth.user.id == "u2"
        assert store.subscriptions.subscriptions == ()
