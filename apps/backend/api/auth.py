from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field

from api.deps import (
    clear_session_cookie,
    get_auth_service,
    get_current_user,
    get_session_service,
    get_settings,
    set_session_cookie,
)
from db.record_store import DuplicateKeyError
from services.auth_service import AuthService, PublicUser
from services.session_service import ROLE_USER, SessionService
from settings.config import Settings

router = APIRouter()


class LoginRequest(BaseModel):
    username: str = Field("", max_length=128)
    password: str = Field("", max_length=256)


class SignupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field("", max_length=128)
    password: str = Field("", max_length=256)
    confirm_password: str = Field("", alias="confirmPassword", max_length=256)


class AuthResponse(BaseModel):
    id: int
    username: str


def _validate_signup(payload: SignupRequest) -> None:
    error = None
    if not payload.username or not payload.password:
        error = "Username and password are required"
    elif len(payload.username) < 3:
        error = "Username must be at least 3 characters"
    elif len(payload.password) < 6:
        error = "Password must be at least 6 characters"
    elif payload.password != payload.confirm_password:
        error = "Passwords do not match"
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)


def _start_session(response: Response, user: PublicUser, settings: Settings, sessions: SessionService) -> None:
    token = sessions.create_session(user.id, ROLE_USER)
    set_session_cookie(response, settings, settings.user_cookie_name, token, sessions.ttl_seconds)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    auth_service: AuthService = Depends(get_auth_service),
    sessions: SessionService = Depends(get_session_service),
) -> AuthResponse:
    _validate_signup(payload)
    try:
        user = auth_service.register(payload.username, payload.password)
    except DuplicateKeyError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
    _start_session(response, user, settings, sessions)
    return AuthResponse(id=user.id, username=user.username)


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    auth_service: AuthService = Depends(get_auth_service),
    sessions: SessionService = Depends(get_session_service),
) -> AuthResponse:
    if not payload.username or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username and password are required")
    user = auth_service.authenticate(payload.username, payload.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
    _start_session(response, user, settings, sessions)
    return AuthResponse(id=user.id, username=user.username)


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    sessions: SessionService = Depends(get_session_service),
) -> dict:
    token = request.cookies.get(settings.user_cookie_name)
    if token:
        sessions.delete_session(token)
    clear_session_cookie(response, settings.user_cookie_name)
    return {"ok": True}


@router.get("/me", response_model=AuthResponse)
def me(user: PublicUser = Depends(get_current_user)) -> AuthResponse:
    return AuthResponse(id=user.id, username=user.username)
