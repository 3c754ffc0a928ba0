# Supabase Auth
# No custom tables are required - Supabase Auth handles:
# - User registration and login (auth.users table)
# - OAuth with Google and GitHub (PKCE code exchange on /auth/callback)
# - Session persistence and token refresh inside the client

"""
Supabase Auth calls used by AuthGateway:
- auth.get_user() - Bootstrap the principal from the stored session
- auth.sign_in_with_password() - Email/password login
- auth.sign_up() - Create an account
- auth.sign_out() - End the session
- auth.sign_in_with_oauth() - Start a provider redirect
- auth.exchange_code_for_session() - Finish a provider redirect
- auth.on_auth_state_change() - Session events, forwarded to AppState
"""
