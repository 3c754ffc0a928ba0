import logging

from supabase import AsyncClient

from app.config import settings
from app.core.errors import SessionMissingError, to_gateway_error
from app.core.results import GatewayResult
from app.core.state import AppState
from app.modules.auth.schemas import OAuthProvider

logger = logging.getLogger(__name__)


class AuthGateway:
    """Supabase Auth on behalf of AppState.auth. Operations return results, never raise."""

    def __init__(self, supabase: AsyncClient, store: AppState, listen: bool = True):
        self.supabase = supabase
        self.store = store
        if listen:
            self._listen()

    @property
    def state(self):
        return self.store.auth

    def _listen(self) -> None:
        """Forward the SDK's auth events into the session channel the state listens on."""
        self.supabase.auth.on_auth_state_change(self.store.sessions.publish)

    async def load_user(self) -> None:
        """Bootstrap the principal from the current session, if any"""
        with self.state.busy():
            try:
                response = await self.supabase.auth.get_user()
                if response is None or response.user is None:
                    raise SessionMissingError("load_user")
                self.state.set_user(response.user)
            except Exception as e:
                error = to_gateway_error(e, "load_user")
                if isinstance(error, SessionMissingError):
                    logger.debug("No active session")
                else:
                    logger.error(f"Error loading user: {error}")
                self.state.clear()

    async def sign_in(self, email: str, password: str) -> GatewayResult:
        with self.state.busy():
            try:
                response = await self.supabase.auth.sign_in_with_password({
                    "email": email,
                    "password": password
                })
                self.state.set_user(response.user)
                return GatewayResult.success(response)
            except Exception as e:
                logger.error(f"Error signing in: {e}")
                return GatewayResult.failure(to_gateway_error(e, "sign_in"))

    async def sign_up(self, email: str, password: str) -> GatewayResult:
        with self.state.busy():
            try:
                response = await self.supabase.auth.sign_up({
                    "email": email,
                    "password": password
                })
                self.state.set_user(response.user)
                return GatewayResult.success(response)
            except Exception as e:
                logger.error(f"Error signing up: {e}")
                return GatewayResult.failure(to_gateway_error(e, "sign_up"))

    async def sign_out(self) -> GatewayResult:
        with self.state.busy():
            try:
                await self.supabase.auth.sign_out()
                self.state.clear()
                return GatewayResult.success()
            except Exception as e:
                logger.error(f"Error signing out: {e}")
                return GatewayResult.failure(to_gateway_error(e, "sign_out"))

    async def sign_in_with_google(self) -> GatewayResult:
        return await self._sign_in_with_oauth("google")

    async def sign_in_with_github(self) -> GatewayResult:
        return await self._sign_in_with_oauth("github")

    async def _sign_in_with_oauth(self, provider: OAuthProvider) -> GatewayResult:
        # The principal arrives later through the session channel, once the
        # provider redirects back and the code is exchanged.
        with self.state.busy():
            try:
                response = await self.supabase.auth.sign_in_with_oauth({
                    "provider": provider,
                    "options": {"redirect_to": settings.oauth_redirect_url}
                })
                return GatewayResult.success(response)
            except Exception as e:
                logger.error(f"Error signing in with {provider}: {e}")
                return GatewayResult.failure(to_gateway_error(e, f"sign_in_with_{provider}"))

    async def exchange_code(self, auth_code: str) -> GatewayResult:
        """Finish a PKCE OAuth flow. The resulting SIGNED_IN event sets the principal."""
        with self.state.busy():
            try:
                response = await self.supabase.auth.exchange_code_for_session({
                    "auth_code": auth_code,
                    "redirect_to": settings.oauth_redirect_url
                })
                return GatewayResult.success(response)
            except Exception as e:
                logger.error(f"Error exchanging OAuth code: {e}")
                return GatewayResult.failure(to_gateway_error(e, "exchange_code"))

