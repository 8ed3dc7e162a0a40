# PURPOSE: bearer-token dependency for protected routes.
# The token is checked before any store access; no DB lookup is needed.

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .errors import AuthError
from .security import TokenIdentity, TokenService

# auto_error=False: a missing or non-Bearer header reaches us as None, so the
# rejection uses the app's 403 error shape instead of FastAPI's default.
bearer_scheme = HTTPBearer(auto_error=False)

token_service = TokenService.from_settings(settings)


def get_token_service() -> TokenService:
    return token_service


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> TokenIdentity:
    """Verify the Authorization header and return the token identity."""
    if credentials is None:
        raise AuthError("Authorization header missing or malformed")
    token = (credentials.credentials or "").strip()
    if not token or " " in token:
        raise AuthError("Authorization header missing or malformed")
    return tokens.verify(token)
