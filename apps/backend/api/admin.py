from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field

from api.deps import (
    clear_session_cookie,
    get_auth_service,
    get_employee_repo,
    get_session_service,
    get_settings,
    require_admin,
    set_session_cookie,
)
from db.employee_repo import EmployeeRepo
from services.auth_service import AuthService
from services.session_service import ROLE_ADMIN, SessionService
from settings.config import Settings

router = APIRouter()
logger = logging.getLogger("backend.api")

RECENT_EMPLOYEES_LIMIT = 4


class AdminLoginRequest(BaseModel):
    username: str = Field("", max_length=128)
    password: str = Field("", max_length=256)


@router.post("/login")
def admin_login(
    payload: AdminLoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    auth_service: AuthService = Depends(get_auth_service),
    sessions: SessionService = Depends(get_session_service),
) -> dict:
    if not auth_service.check_admin(payload.username, payload.password):
        logger.warning("Rejected admin login for %r", payload.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
    token = sessions.create_session(payload.username, ROLE_ADMIN)
    set_session_cookie(response, settings, settings.admin_cookie_name, token, sessions.ttl_seconds)
    return {"ok": True}


@router.post("/logout")
def admin_logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    sessions: SessionService = Depends(get_session_service),
) -> dict:
    token = request.cookies.get(settings.admin_cookie_name)
    if token:
        sessions.delete_session(token)
    clear_session_cookie(response, settings.admin_cookie_name)
    return {"ok": True}


@router.get("/dashboard", dependencies=[Depends(require_admin)])
def dashboard(repo: EmployeeRepo = Depends(get_employee_repo)) -> dict:
    employees = repo.list_all()
    recent = repo.list_recent(RECENT_EMPLOYEES_LIMIT)
    return {
        "total_employees": len(employees),
        "recent_employees": [e.to_dict() for e in recent],
        "employees": [e.to_dict() for e in employees],
    }
