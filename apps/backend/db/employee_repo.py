from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from db.json_file import JsonFileStorage
from db.record_store import IndexedRecordStore
from settings.config import Settings


# Python attribute name -> field name in employees.json
_FIELD_NAMES = {
    "name": "name",
    "designation": "designation",
    "email": "email",
    "contact": "contact",
    "department": "department",
    "joining_date": "joiningDate",
    "location": "location",
}
EMPLOYEE_FIELDS = tuple(_FIELD_NAMES.values())


@dataclass
class EmployeeRecord:
    id: int
    name: str
    designation: str
    email: str
    contact: str
    department: str
    joining_date: str
    location: str

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "EmployeeRecord":
        return cls(
            id=int(row["id"]),
            name=row.get("name", ""),
            designation=row.get("designation", ""),
            email=row.get("email", ""),
            contact=row.get("contact", ""),
            department=row.get("department", ""),
            joining_date=row.get("joiningDate", ""),
            location=row.get("location", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id}
        for attr, field in _FIELD_NAMES.items():
            payload[field] = getattr(self, attr)
        return payload


def _to_fields(values: dict[str, Any]) -> dict[str, Any]:
    unknown = [k for k in values if k not in _FIELD_NAMES]
    if unknown:
        raise ValueError(f"Unknown employee field(s): {', '.join(sorted(unknown))}")
    return {_FIELD_NAMES[k]: v for k, v in values.items()}


class EmployeeRepo:
    def __init__(self, store: IndexedRecordStore) -> None:
        self._store = store

    @property
    def store(self) -> IndexedRecordStore:
        return self._store

    def init(self) -> None:
        self._store.init()

    def flush(self) -> bool:
        return self._store.flush()

    def close(self) -> None:
        self._store.close()

    def list_all(self) -> List[EmployeeRecord]:
        return [EmployeeRecord.from_dict(r) for r in self._store.get_all()]

    def list_recent(self, limit: int = 4) -> List[EmployeeRecord]:
        return [EmployeeRecord.from_dict(r) for r in self._store.get_recent(limit)]

    def get_by_id(self, employee_id: Any) -> Optional[EmployeeRecord]:
        row = self._store.get_by_id(employee_id)
        return EmployeeRecord.from_dict(row) if row else None

    def get_by_email(self, email: str) -> Optional[EmployeeRecord]:
        row = self._store.get_by_key(email)
        return EmployeeRecord.from_dict(row) if row else None

    def email_exists(self, email: str, exclude_id: Any = None) -> bool:
        return self._store.exists(email, exclude_id)

    def create(
        self,
        *,
        name: str,
        designation: str,
        email: str,
        contact: str,
        department: str,
        joining_date: str,
        location: str,
    ) -> EmployeeRecord:
        fields = _to_fields(
            {
                "name": name,
                "designation": designation,
                "email": email,
                "contact": contact,
                "department": department,
                "joining_date": joining_date,
                "location": location,
            }
        )
        missing = [f for f, v in fields.items() if v is None or str(v).strip() == ""]
        if missing:
            raise ValueError(f"All fields are required: {', '.join(EMPLOYEE_FIELDS)}")
        return EmployeeRecord.from_dict(self._store.add(fields))

    def update(self, employee_id: Any, **changes: Any) -> Optional[EmployeeRecord]:
        row = self._store.update(employee_id, _to_fields(changes))
        return EmployeeRecord.from_dict(row) if row else None

    def delete(self, employee_id: Any) -> bool:
        return self._store.delete(employee_id)

    def count(self) -> int:
        return self._store.count()


def create_employee_repo(settings: Settings) -> EmployeeRepo:
    store = IndexedRecordStore(
        JsonFileStorage(settings.employees_file),
        natural_key="email",
        order_field="joiningDate",
        debounce_seconds=settings.save_debounce_seconds,
        retry_attempts=settings.save_retry_attempts,
        retry_backoff_seconds=settings.save_retry_backoff_seconds,
        name="employees",
    )
    return EmployeeRepo(store)
