from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from api.deps import get_employee_repo, require_admin
from db.employee_repo import EMPLOYEE_FIELDS, EmployeeRepo
from db.record_store import DuplicateKeyError


router = APIRouter()
logger = logging.getLogger("backend.api")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmployeePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    designation: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    department: Optional[str] = None
    joining_date: Optional[str] = Field(None, alias="joiningDate")
    location: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _not_found() -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "Employee not found")


@router.get("/employees")
def list_employees(repo: EmployeeRepo = Depends(get_employee_repo)) -> dict:
    employees = repo.list_all()
    return {"success": True, "count": len(employees), "data": [e.to_dict() for e in employees]}


@router.get("/employees/{employee_id}")
def get_employee(employee_id: str, repo: EmployeeRepo = Depends(get_employee_repo)):
    employee = repo.get_by_id(employee_id)
    if employee is None:
        return _not_found()
    return {"success": True, "data": employee.to_dict()}


@router.post("/employees", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_employee(payload: EmployeePayload, repo: EmployeeRepo = Depends(get_employee_repo)):
    values = payload.model_dump()
    if any(not (v or "").strip() for v in values.values()):
        return _error(status.HTTP_400_BAD_REQUEST, f"All fields are required: {', '.join(EMPLOYEE_FIELDS)}")
    if not EMAIL_RE.match(payload.email or ""):
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid email format")
    try:
        employee = repo.create(**values)
    except DuplicateKeyError:
        return _error(status.HTTP_409_CONFLICT, "Email already exists")
    logger.info("Employee %s created (%s)", employee.id, employee.email)
    return {"success": True, "data": employee.to_dict()}


@router.put("/employees/{employee_id}", dependencies=[Depends(require_admin)])
def update_employee(employee_id: str, payload: EmployeePayload, repo: EmployeeRepo = Depends(get_employee_repo)):
    if repo.get_by_id(employee_id) is None:
        return _not_found()
    if payload.email and not EMAIL_RE.match(payload.email):
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid email format")
    try:
        employee = repo.update(employee_id, **payload.model_dump(exclude_none=True))
    except DuplicateKeyError:
        return _error(status.HTTP_409_CONFLICT, "Email already exists")
    if employee is None:
        # Deleted between the existence check and the update.
        return _not_found()
    return {"success": True, "data": employee.to_dict()}


@router.delete("/employees/{employee_id}", dependencies=[Depends(require_admin)])
def delete_employee(employee_id: str, repo: EmployeeRepo = Depends(get_employee_repo)):
    if not repo.delete(employee_id):
        return _not_found()
    logger.info("Employee %s deleted", employee_id)
    return {"success": True, "message": "Employee deleted successfully"}
