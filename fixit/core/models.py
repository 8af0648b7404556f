from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Mapping

Role = Literal["admin", "user", "technician"]
Status = Literal["open", "in_progress", "resolved", "closed"]
Priority = Literal["low", "medium", "high", "critical"]

ROLES: tuple[str, ...] = ("admin", "user", "technician")
STATUSES: tuple[str, ...] = ("open", "in_progress", "resolved", "closed")
PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "critical")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: str) -> datetime:
    # Accept the "Z" suffix written by other clients.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_role(role: str | None) -> str:
    return role if role in ROLES else "user"


def initials(name: str) -> str:
    return "".join(part[0] for part in name.split()[:2]).upper()


@dataclass(frozen=True)
class User:
    """Account as seen by the rest of the application (no password)."""

    user_id: str
    name: str
    email: str
    created_at: datetime
    role: str = "user"  # admin | user | technician
    telephone: str | None = None
    department: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
        }
        if self.telephone is not None:
            payload["telephone"] = self.telephone
        if self.department is not None:
            payload["department"] = self.department
        payload["createdAt"] = format_timestamp(self.created_at)
        payload["role"] = self.role
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> User:
        return cls(
            user_id=payload["id"],
            name=payload["name"],
            email=payload["email"],
            created_at=parse_timestamp(payload["createdAt"]),
            role=normalize_role(payload.get("role")),
            telephone=payload.get("telephone"),
            department=payload.get("department"),
        )


@dataclass(frozen=True)
class UserRecord:
    """Stored account, password included."""

    user_id: str
    name: str
    email: str
    password: str
    created_at: datetime
    role: str = "user"
    telephone: str | None = None
    department: str | None = None

    def public(self) -> User:
        return User(
            user_id=self.user_id,
            name=self.name,
            email=self.email,
            created_at=self.created_at,
            role=self.role,
            telephone=self.telephone,
            department=self.department,
        )

    def to_dict(self) -> dict[str, Any]:
        payload = self.public().to_dict()
        payload["password"] = self.password
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> UserRecord:
        user = User.from_dict(payload)
        return cls(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            password=payload.get("password", ""),
            created_at=user.created_at,
            role=user.role,
            telephone=user.telephone,
            department=user.department,
        )


# Snapshots copy user fields at the moment a relation is created. They are
# never refreshed when the account changes later.


@dataclass(frozen=True)
class CreatorSnapshot:
    user_id: str
    name: str
    email: str
    department: str | None = None

    @classmethod
    def of(cls, user: User) -> CreatorSnapshot:
        return cls(user_id=user.user_id, name=user.name, email=user.email, department=user.department)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.user_id, "name": self.name, "email": self.email}
        if self.department is not None:
            payload["department"] = self.department
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> CreatorSnapshot:
        return cls(
            user_id=payload["id"],
            name=payload["name"],
            email=payload["email"],
            department=payload.get("department"),
        )


@dataclass(frozen=True)
class AssigneeSnapshot:
    user_id: str
    name: str
    email: str
    initials: str

    @classmethod
    def of(cls, user: User) -> AssigneeSnapshot:
        return cls(user_id=user.user_id, name=user.name, email=user.email, initials=initials(user.name))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.user_id, "name": self.name, "email": self.email, "initials": self.initials}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> AssigneeSnapshot:
        return cls(
            user_id=payload["id"],
            name=payload["name"],
            email=payload["email"],
            initials=payload.get("initials") or initials(payload["name"]),
        )


@dataclass(frozen=True)
class CommentAuthor:
    user_id: str
    name: str

    @classmethod
    def of(cls, user: User) -> CommentAuthor:
        return cls(user_id=user.user_id, name=user.name)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.user_id, "name": self.name}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> CommentAuthor:
        return cls(user_id=payload["id"], name=payload["name"])


@dataclass(frozen=True)
class Comment:
    text: str
    created_by: CommentAuthor
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "createdBy": self.created_by.to_dict(),
            "createdAt": format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Comment:
        return cls(
            text=payload["text"],
            created_by=CommentAuthor.from_dict(payload["createdBy"]),
            created_at=parse_timestamp(payload["createdAt"]),
        )


@dataclass(frozen=True)
class Incident:
    incident_id: str  # INC-NNNNNN
    title: str
    description: str
    status: str  # open | in_progress | resolved | closed
    priority: str  # low | medium | high | critical
    department: str
    created_by: CreatorSnapshot
    created_at: datetime
    updated_at: datetime
    assignee: AssigneeSnapshot | None = None
    comments: tuple[Comment, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.incident_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "department": self.department,
            "createdBy": self.created_by.to_dict(),
        }
        if self.assignee is not None:
            payload["assignee"] = self.assignee.to_dict()
        if self.comments:
            payload["comments"] = [comment.to_dict() for comment in self.comments]
        payload["createdAt"] = format_timestamp(self.created_at)
        payload["updatedAt"] = format_timestamp(self.updated_at)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Incident:
        assignee = payload.get("assignee")
        return cls(
            incident_id=payload["id"],
            title=payload["title"],
            description=payload["description"],
            status=payload["status"],
            priority=payload["priority"],
            department=payload.get("department", ""),
            created_by=CreatorSnapshot.from_dict(payload["createdBy"]),
            created_at=parse_timestamp(payload["createdAt"]),
            updated_at=parse_timestamp(payload["updatedAt"]),
            assignee=AssigneeSnapshot.from_dict(assignee) if assignee else None,
            comments=tuple(Comment.from_dict(entry) for entry in payload.get("comments") or ()),
        )
