from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ticketdesk.core.auth import claims_user_type, get_optional_claims
from ticketdesk.core.config import Settings
from ticketdesk.core.dependencies import get_app_settings, get_auth_service, get_token_service
from ticketdesk.core.errors import ConflictError, InvalidArgumentError
from ticketdesk.core.tokens import TokenService
from ticketdesk.core.users import AuthenticationService
from ticketdesk.models.models import UserType

router = APIRouter(prefix="/api/auth")


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class RegisterRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: str
    password: str
    user_type: UserType = UserType.CUSTOMER


@router.post("/login")
def login(
    payload: LoginRequest,
    response: Response,
    auth: AuthenticationService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """Verify credentials, return a session token and set it as a cookie."""
    if not payload.username.strip() or not payload.password.strip():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Username and password are required"},
        )

    result = auth.login(payload.username, payload.password)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.error_message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    token = tokens.sign_token(
        {"userId": str(result.user_id), "userType": str(int(result.user_type))},
        expire_minutes,
    )
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=expire_minutes * 60,
        httponly=True,
        secure=True,
        samesite="strict",
    )
    return {"token": token, "userId": result.user_id, "userType": int(result.user_type)}


@router.post("/register", status_code=201)
def register(
    payload: RegisterRequest,
    auth: AuthenticationService = Depends(get_auth_service),
    claims: Optional[Dict[str, str]] = Depends(get_optional_claims),
):
    """Register an account. Customers may self-register; staff accounts need an admin."""
    if payload.user_type != UserType.CUSTOMER:
        if claims is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if claims_user_type(claims) != UserType.ADMIN:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions"
            )

    try:
        user = auth.register(payload.username, payload.password, payload.user_type)
    except ConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Username already exists"
        )
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return {"id": user.id, "username": user.username, "userType": int(user.user_type)}
