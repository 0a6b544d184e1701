from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ticketdesk.core.auth import require_admin
from ticketdesk.core.dependencies import get_auth_service
from ticketdesk.core.errors import InvalidArgumentError
from ticketdesk.core.users import AuthenticationService

router = APIRouter(prefix="/api/admin")


class PasswordChange(BaseModel):
    password: str = Field(..., min_length=1)


@router.get("/users")
def list_users(
    auth: AuthenticationService = Depends(get_auth_service),
    claims=Depends(require_admin),
):
    """Admin only. Credential fields are never returned."""
    return [
        {"id": u.id, "username": u.username, "userType": int(u.user_type)}
        for u in auth.list_users()
    ]


@router.put("/users/{user_id}/password", status_code=204)
def change_password(
    user_id: int,
    payload: PasswordChange,
    auth: AuthenticationService = Depends(get_auth_service),
    claims=Depends(require_admin),
):
    try:
        changed = auth.change_password(user_id, payload.password)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if not changed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    auth: AuthenticationService = Depends(get_auth_service),
    claims=Depends(require_admin),
):
    if not auth.delete_user(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
