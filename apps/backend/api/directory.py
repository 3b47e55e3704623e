from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from api.deps import get_employee_repo, get_optional_user
from db.employee_repo import EmployeeRepo
from services.auth_service import PublicUser

router = APIRouter()


@router.get("/directory")
def directory(
    repo: EmployeeRepo = Depends(get_employee_repo),
    user: Optional[PublicUser] = Depends(get_optional_user),
) -> dict:
    return {
        "employees": [e.to_dict() for e in repo.list_all()],
        "user": user.to_dict() if user else None,
    }
