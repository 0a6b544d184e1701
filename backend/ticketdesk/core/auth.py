from typing import Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from ticketdesk.core.config import Settings
from ticketdesk.core.dependencies import get_app_settings, get_token_service
from ticketdesk.core.errors import UnauthenticatedError
from ticketdesk.core.tokens import TokenService
from ticketdesk.models.models import UserType

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_optional_claims(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
) -> Optional[Dict[str, str]]:
    """Claims of the session token, or None when the request carries none.

    The token is taken from the Authorization header, falling back to the
    auth cookie. A token that is present but invalid is rejected.
    """
    token = bearer or request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        return None
    try:
        return tokens.validate_token(token)
    except UnauthenticatedError:
        raise _credentials_exception()


def get_current_claims(
    claims: Optional[Dict[str, str]] = Depends(get_optional_claims),
) -> Dict[str, str]:
    """Claims of the session token; 401 when missing or invalid."""
    if claims is None:
        raise _credentials_exception()
    return claims


def claims_user_type(claims: Optional[Dict[str, str]]) -> Optional[UserType]:
    try:
        return UserType(int(claims["userType"]))
    except (KeyError, TypeError, ValueError):
        return None


def check_user_type(*allowed: UserType):
    """Dependency factory admitting only tokens whose userType is in ``allowed``."""

    def user_type_checker(claims: Dict[str, str] = Depends(get_current_claims)):
        if claims_user_type(claims) not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions"
            )
        return claims

    return user_type_checker


require_staff = check_user_type(UserType.USER, UserType.ADMIN)
require_admin = check_user_type(UserType.ADMIN)
