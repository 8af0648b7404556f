from __future__ import annotations

import logging
import random
from dataclasses import fields, replace
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from .local_store import INCIDENTS_KEY, LocalStorage
from .models import (
    PRIORITIES,
    STATUSES,
    AssigneeSnapshot,
    Comment,
    CommentAuthor,
    CreatorSnapshot,
    Incident,
    User,
    utcnow,
)

logger = logging.getLogger(__name__)

# Identity, creator snapshot, timestamps and comments only change through
# create and add_comment.
_PATCHABLE_FIELDS = frozenset(f.name for f in fields(Incident)) - {
    "incident_id",
    "created_by",
    "created_at",
    "updated_at",
    "comments",
}


def generate_incident_id() -> str:
    return f"INC-{random.randint(100000, 999999)}"


def _is_admin(actor: User) -> bool:
    return actor.role == "admin"


def _is_assignee(actor: User, incident: Incident) -> bool:
    return incident.assignee is not None and incident.assignee.user_id == actor.user_id


def can_change_status(actor: Optional[User], incident: Incident) -> bool:
    return actor is not None and (_is_admin(actor) or _is_assignee(actor, incident))


def can_comment(actor: Optional[User], incident: Incident) -> bool:
    return actor is not None and (_is_admin(actor) or _is_assignee(actor, incident))


def can_delete(actor: Optional[User], incident: Incident) -> bool:
    return actor is not None and (_is_admin(actor) or incident.created_by.user_id == actor.user_id)


def can_assign(actor: Optional[User], incident: Incident) -> bool:
    if actor is None:
        return False
    return _is_admin(actor) or (actor.role == "technician" and incident.assignee is None)


class IncidentStore:
    """Whole-list JSON persistence for incidents."""

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    def load(self) -> list[Incident]:
        data = self._storage.get_item(INCIDENTS_KEY, [])
        if not isinstance(data, list):
            logger.warning("Ignoring malformed incident list of type %s", type(data).__name__)
            return []
        incidents = []
        for entry in data:
            try:
                incidents.append(Incident.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable incident entry: %r", exc)
        return incidents

    def save(self, incidents: Iterable[Incident]) -> None:
        self._storage.set_item(INCIDENTS_KEY, [incident.to_dict() for incident in incidents])

    def list_incidents(self) -> list[Incident]:
        return self.load()


class IncidentService:
    """Ticket operations, each authorized against the actor passed in.

    Denied and not-found outcomes are reported as ``None`` (or ``False`` for
    ``delete``) and logged; callers re-check preconditions when they need to
    tell them apart.
    """

    def __init__(
        self,
        store: IncidentStore,
        *,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = generate_incident_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    def create(
        self,
        *,
        title: str,
        description: str,
        department: str,
        priority: str,
        actor: Optional[User],
    ) -> Incident | None:
        if actor is None:
            logger.info("Refusing to create an incident without a logged-in user")
            return None
        if not title.strip():
            raise ValueError("Title is required.")
        if not description.strip():
            raise ValueError("Description is required.")
        _check_priority(priority)

        incidents = self._store.load()
        now = self._clock()
        incident = Incident(
            incident_id=self._new_id(incidents),
            title=title.strip(),
            description=description.strip(),
            status="open",
            priority=priority,
            department=department,
            created_by=CreatorSnapshot.of(actor),
            created_at=now,
            updated_at=now,
        )
        incidents.append(incident)
        self._store.save(incidents)
        logger.info("User %s opened %s (%s)", actor.user_id, incident.incident_id, priority)
        return incident

    def get(self, incident_id: str) -> Incident | None:
        for incident in self._store.load():
            if incident.incident_id == incident_id:
                return incident
        return None

    def list_incidents(self) -> list[Incident]:
        return self._store.list_incidents()

    def update(self, incident_id: str, patch: Mapping[str, Any], actor: Optional[User]) -> Incident | None:
        """Shallow-merge ``patch`` over the stored incident.

        Status changes are only accepted from an admin or the current assignee.
        """
        unknown = set(patch) - _PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
        if "status" in patch:
            _check_status(patch["status"])
        if "priority" in patch:
            _check_priority(patch["priority"])
        if actor is None:
            logger.info("Refusing to update %s without a logged-in user", incident_id)
            return None

        incidents = self._store.load()
        index = _index_of(incidents, incident_id)
        if index is None:
            logger.info("Update of unknown incident %s ignored", incident_id)
            return None
        incident = incidents[index]

        if "status" in patch and patch["status"] != incident.status and not can_change_status(actor, incident):
            logger.info("User %s may not change status of %s", actor.user_id, incident_id)
            return None

        updated = replace(incident, **patch, updated_at=self._clock())

        incidents[index] = updated
        self._store.save(incidents)
        logger.info("User %s updated %s: %s", actor.user_id, incident_id, ", ".join(sorted(patch)) or "touch")
        return updated

    def change_status(self, incident_id: str, status: str, actor: Optional[User]) -> Incident | None:
        return self.update(incident_id, {"status": status}, actor)

    def assign(self, incident_id: str, technician: User, actor: Optional[User]) -> Incident | None:
        if technician.role != "technician":
            raise ValueError(f"{technician.name} is not a technician.")
        incident = self.get(incident_id)
        if incident is None:
            logger.info("Assignment of unknown incident %s ignored", incident_id)
            return None
        if not can_assign(actor, incident):
            logger.info("User %s may not assign %s", getattr(actor, "user_id", None), incident_id)
            return None
        return self.update(incident_id, {"assignee": AssigneeSnapshot.of(technician)}, actor)

    def add_comment(self, incident_id: str, comment: Comment, actor: Optional[User]) -> Incident | None:
        if actor is None:
            logger.info("Refusing to comment on %s without a logged-in user", incident_id)
            return None

        incidents = self._store.load()
        index = _index_of(incidents, incident_id)
        if index is None:
            logger.info("Comment on unknown incident %s ignored", incident_id)
            return None
        incident = incidents[index]
        if not can_comment(actor, incident):
            logger.info("User %s may not comment on %s", actor.user_id, incident_id)
            return None

        updated = replace(
            incident,
            comments=(*incident.comments, comment),
            updated_at=self._clock(),
        )
        incidents[index] = updated
        self._store.save(incidents)
        return updated

    def comment(self, incident_id: str, text: str, actor: Optional[User]) -> Incident | None:
        if not text.strip():
            raise ValueError("Comment text is required.")
        if actor is None:
            logger.info("Refusing to comment on %s without a logged-in user", incident_id)
            return None
        entry = Comment(text=text.strip(), created_by=CommentAuthor.of(actor), created_at=self._clock())
        return self.add_comment(incident_id, entry, actor)

    def delete(self, incident_id: str, actor: Optional[User]) -> bool:
        if actor is None:
            logger.info("Refusing to delete %s without a logged-in user", incident_id)
            return False

        incidents = self._store.load()
        incident = next((item for item in incidents if item.incident_id == incident_id), None)
        if incident is None:
            logger.info("Delete of unknown incident %s ignored", incident_id)
            return False
        if not can_delete(actor, incident):
            logger.info("User %s may not delete %s", actor.user_id, incident_id)
            return False

        self._store.save(item for item in incidents if item.incident_id != incident_id)
        logger.info("User %s deleted %s", actor.user_id, incident_id)
        return True

    def _new_id(self, incidents: list[Incident]) -> str:
        taken = {incident.incident_id for incident in incidents}
        incident_id = self._id_factory()
        while incident_id in taken:
            incident_id = self._id_factory()
        return incident_id


def _index_of(incidents: list[Incident], incident_id: str) -> int | None:
    for index, incident in enumerate(incidents):
        if incident.incident_id == incident_id:
            return index
    return None


def _check_status(status: str) -> None:
    if status not in STATUSES:
        raise ValueError(f"Unknown status '{status}'.")


def _check_priority(priority: str) -> None:
    if priority not in PRIORITIES:
        raise ValueError(f"Unknown priority '{priority}'.")
