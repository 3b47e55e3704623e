from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status

from db.employee_repo import EmployeeRepo
from services.auth_service import AuthService, PublicUser
from services.session_service import ROLE_ADMIN, ROLE_USER, SessionService
from settings.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_employee_repo(request: Request) -> EmployeeRepo:
    return request.app.state.employee_repo


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_session_service(request: Request) -> SessionService:
    return request.app.state.session_service


def set_session_cookie(response: Response, settings: Settings, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )


def clear_session_cookie(response: Response, name: str) -> None:
    response.delete_cookie(name, path="/")


def get_optional_user(
    request: Request,
    settings: Settings = Depends(get_settings),
    auth_service: AuthService = Depends(get_auth_service),
    session_service: SessionService = Depends(get_session_service),
) -> Optional[PublicUser]:
    token = request.cookies.get(settings.user_cookie_name)
    if not token:
        return None
    subject = session_service.get_subject(token, ROLE_USER)
    if subject is None:
        return None
    # The account may have vanished from users.json since the cookie was issued.
    return auth_service.get_user(subject)


def get_current_user(user: Optional[PublicUser] = Depends(get_optional_user)) -> PublicUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def is_admin(
    request: Request,
    settings: Settings = Depends(get_settings),
    session_service: SessionService = Depends(get_session_service),
) -> bool:
    token = request.cookies.get(settings.admin_cookie_name)
    if not token:
        return False
    return session_service.get_subject(token, ROLE_ADMIN) is not None


def require_admin(admin: bool = Depends(is_admin)) -> None:
    if not admin:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin authentication required")
