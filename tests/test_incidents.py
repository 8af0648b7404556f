from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from fixit.core.incidents import IncidentService, can_assign, generate_incident_id
from fixit.core.local_store import INCIDENTS_KEY, USERS_KEY
from fixit.core.models import AssigneeSnapshot, Comment, CommentAuthor, CreatorSnapshot, Incident

FIXED_STAMP = datetime(2024, 1, 10, 8, 0, tzinfo=timezone.utc)


def _open(incidents, actor, **overrides):
    values = dict(
        title="VPN drops",
        description="Connection resets every few minutes",
        department="ti",
        priority="high",
        actor=actor,
    )
    values.update(overrides)
    return incidents.create(**values)


@pytest.fixture
def fixed_incident(incident_store, reporter):
    incident = Incident(
        incident_id="INC-100001",
        title="Broken monitor",
        description="Screen flickers",
        status="open",
        priority="low",
        department="financeiro",
        created_by=CreatorSnapshot.of(reporter),
        created_at=FIXED_STAMP,
        updated_at=FIXED_STAMP,
    )
    incident_store.save([incident])
    return incident


def test_create_opens_unassigned_incident_with_creator_snapshot(incidents, reporter):
    incident = _open(incidents, reporter)

    assert incident.status == "open"
    assert incident.assignee is None
    assert incident.comments == ()
    assert incident.created_by == CreatorSnapshot(
        reporter.user_id, reporter.name, reporter.email, reporter.department
    )
    assert incident.created_at == incident.updated_at
    assert incidents.list_incidents() == [incident]


def test_create_without_actor_is_a_noop(incidents, storage):
    assert _open(incidents, None) is None
    assert storage.get_item(INCIDENTS_KEY) is None


def test_create_validates_input(incidents, reporter):
    with pytest.raises(ValueError):
        _open(incidents, reporter, title="  ")
    with pytest.raises(ValueError):
        _open(incidents, reporter, priority="urgent")


def test_generated_ids_have_six_digits():
    for _ in range(50):
        incident_id = generate_incident_id()
        assert incident_id.startswith("INC-")
        assert len(incident_id) == 10
        assert 100000 <= int(incident_id[4:]) <= 999999


def test_create_retries_ids_already_taken(incident_store, clock, reporter, fixed_incident):
    candidates = iter(["INC-100001", "INC-100001", "INC-200002"])
    service = IncidentService(incident_store, clock=clock, id_factory=lambda: next(candidates))

    incident = _open(service, reporter)

    assert incident.incident_id == "INC-200002"


def test_get_returns_none_for_unknown_id(incidents, fixed_incident):
    assert incidents.get("INC-100001") == fixed_incident
    assert incidents.get("INC-999999") is None


def test_status_change_by_outsider_leaves_incident_untouched(incidents, fixed_incident, bystander, reporter):
    before = incidents.get("INC-100001")

    assert incidents.update("INC-100001", {"status": "closed"}, bystander) is None
    assert incidents.update("INC-100001", {"status": "closed"}, reporter) is None

    assert incidents.get("INC-100001") == before


def test_status_change_by_unassigned_technician_is_rejected(incidents, fixed_incident, technician):
    assert incidents.change_status("INC-100001", "in_progress", technician) is None


def test_admin_can_change_status(incidents, fixed_incident, admin):
    updated = incidents.update("INC-100001", {"status": "resolved"}, admin)

    assert updated.status == "resolved"
    assert updated.updated_at > fixed_incident.updated_at
    assert incidents.get("INC-100001") == updated


def test_same_status_patch_does_not_need_permission(incidents, fixed_incident, bystander):
    updated = incidents.update("INC-100001", {"status": "open", "title": "Broken monitor (2nd floor)"}, bystander)

    assert updated.title == "Broken monitor (2nd floor)"


def test_update_is_shallow_overwrite(incidents, fixed_incident, admin, technician, other_technician):
    incidents.assign("INC-100001", technician, admin)

    updated = incidents.assign("INC-100001", other_technician, admin)

    assert updated.assignee.user_id == other_technician.user_id
    assert updated.assignee.email == other_technician.email


def test_update_rejects_unknown_fields(incidents, fixed_incident, admin):
    with pytest.raises(ValueError):
        incidents.update("INC-100001", {"owner": "x"}, admin)
    with pytest.raises(ValueError):
        incidents.update("INC-100001", {"incident_id": "INC-1"}, admin)


def test_update_without_actor_or_target_is_a_noop(incidents, fixed_incident, admin):
    assert incidents.update("INC-100001", {"title": "x"}, None) is None
    assert incidents.update("INC-424242", {"title": "x"}, admin) is None


def test_update_validates_new_values(incidents, fixed_incident, admin):
    with pytest.raises(ValueError):
        incidents.update("INC-100001", {"status": "archived"}, admin)
    with pytest.raises(ValueError):
        incidents.update("INC-100001", {"priority": "urgent"}, admin)


def test_assignment_rules(incidents, fixed_incident, admin, technician, other_technician, reporter):
    assert incidents.assign("INC-100001", technician, reporter) is None

    claimed = incidents.assign("INC-100001", technician, technician)
    assert claimed.assignee.user_id == technician.user_id
    assert not can_assign(other_technician, claimed)
    assert incidents.assign("INC-100001", other_technician, other_technician) is None

    with pytest.raises(ValueError):
        incidents.assign("INC-100001", reporter, admin)


def test_assignee_snapshot_is_not_refreshed(incidents, fixed_incident, admin, technician, storage):
    incidents.assign("INC-100001", technician, admin)
    users = storage.get_item(USERS_KEY)
    for entry in users:
        if entry["id"] == technician.user_id:
            entry["name"] = "Renamed"
    storage.set_item(USERS_KEY, users)

    assert incidents.get("INC-100001").assignee.name == technician.name


def test_assignee_comment_appends_exactly_one(incidents, fixed_incident, admin, technician):
    assigned = incidents.assign("INC-100001", technician, admin)

    updated = incidents.comment("INC-100001", "Replacing the cable", technician)

    assert len(updated.comments) == 1
    comment = updated.comments[0]
    assert comment.text == "Replacing the cable"
    assert comment.created_by == CommentAuthor(technician.user_id, technician.name)
    assert comment.created_at >= assigned.updated_at
    assert updated.updated_at >= comment.created_at


def test_comments_keep_insertion_order(incidents, fixed_incident, admin):
    incidents.comment("INC-100001", "first", admin)
    incidents.comment("INC-100001", "second", admin)

    assert [c.text for c in incidents.get("INC-100001").comments] == ["first", "second"]


def test_comment_denied_for_creator_and_unassigned_technician(incidents, fixed_incident, reporter, technician):
    entry = Comment("hi", CommentAuthor.of(reporter), FIXED_STAMP)

    assert incidents.add_comment("INC-100001", entry, reporter) is None
    assert incidents.comment("INC-100001", "hi", technician) is None
    assert incidents.add_comment("INC-100001", entry, None) is None
    assert incidents.add_comment("INC-404404", entry, reporter) is None
    assert incidents.get("INC-100001").comments == ()


def test_comment_requires_text(incidents, fixed_incident, admin):
    with pytest.raises(ValueError):
        incidents.comment("INC-100001", "   ", admin)


@pytest.mark.parametrize("actor_fixture", ["reporter", "admin"])
def test_delete_allowed_for_creator_and_admin(request, incidents, fixed_incident, actor_fixture):
    actor = request.getfixturevalue(actor_fixture)

    assert incidents.delete("INC-100001", actor) is True
    assert incidents.list_incidents() == []


@pytest.mark.parametrize("actor_fixture", ["bystander", "technician"])
def test_delete_denied_for_everyone_else(request, incidents, fixed_incident, actor_fixture):
    actor = request.getfixturevalue(actor_fixture)

    assert incidents.delete("INC-100001", actor) is False
    assert len(incidents.list_incidents()) == 1


def test_delete_without_actor_or_target(incidents, fixed_incident, admin):
    assert incidents.delete("INC-100001", None) is False
    assert incidents.delete("INC-000000", admin) is False
    assert len(incidents.list_incidents()) == 1


def test_assigned_technician_cannot_delete(incidents, fixed_incident, admin, technician):
    incidents.assign("INC-100001", technician, admin)

    assert incidents.delete("INC-100001", technician) is False


@pytest.mark.parametrize("size", ["empty", "single", "commented"])
def test_store_round_trip(incident_store, fixed_incident, technician, size):
    if size == "empty":
        data = []
    elif size == "single":
        data = [fixed_incident]
    else:
        comment = Comment("Checked the cable", CommentAuthor.of(technician), FIXED_STAMP)
        data = [fixed_incident, replace(fixed_incident, incident_id="INC-100002", comments=(comment,))]

    incident_store.save(data)

    assert incident_store.load() == data


def test_ticket_lifecycle_scenario(incidents, seeded, reporter, technician):
    t1 = _open(incidents, reporter, priority="high", department="ti")
    listed = incidents.list_incidents()
    assert len(listed) == 1
    assert listed[0].status == "open"

    admin = seeded.login("admin@fixit.com", "admin")
    assigned = incidents.update(t1.incident_id, {"assignee": AssigneeSnapshot.of(technician)}, admin)
    assert assigned.assignee.user_id == technician.user_id

    started = incidents.update(t1.incident_id, {"status": "in_progress"}, technician)
    assert started is not None
    assert started.updated_at != assigned.updated_at

    assert incidents.update(t1.incident_id, {"status": "closed"}, reporter) is None
    assert incidents.get(t1.incident_id).status == "in_progress"


@pytest.mark.parametrize("field", ["comments", "created_at", "updated_at", "created_by"])
def test_update_rejects_managed_fields(incidents, fixed_incident, admin, field):
    before = incidents.get("INC-100001")
    patch = {
        "comments": (),
        "created_at": FIXED_STAMP + timedelta(days=30),
        "updated_at": FIXED_STAMP - timedelta(days=30),
        "created_by": CreatorSnapshot.of(admin),
    }[field]

    with pytest.raises(ValueError):
        incidents.update("INC-100001", {field: patch}, admin)
    assert incidents.get("INC-100001") == before


def test_comments_survive_later_updates(incidents, fixed_incident, admin, bystander):
    incidents.comment("INC-100001", "Cable replaced", admin)
    incidents.update("INC-100001", {"title": "Monitor flickers"}, bystander)
    incidents.update("INC-100001", {"status": "resolved"}, admin)
    incidents.comment("INC-100001", "Confirmed with user", admin)

    assert [c.text for c in incidents.get("INC-100001").comments] == ["Cable replaced", "Confirmed with user"]


def test_updated_at_never_precedes_created_at(incidents, reporter, admin, technician):
    incident = _open(incidents, reporter)

    for patch in ({"title": "VPN drops hourly"}, {"priority": "critical"}, {"assignee": AssigneeSnapshot.of(technician)}):
        updated = incidents.update(incident.incident_id, patch, admin)
        assert updated.updated_at >= updated.created_at
    stored = incidents.get(incident.incident_id)
    assert stored.created_at == incident.created_at
    assert stored.updated_at > stored.created_at


def test_malformed_incident_entries_are_skipped(incidents, fixed_incident, storage, reporter, caplog):
    entries = storage.get_item(INCIDENTS_KEY)
    storage.set_item(INCIDENTS_KEY, [{"id": "INC-1"}, *entries])

    assert [i.incident_id for i in incidents.list_incidents()] == ["INC-100001"]
    assert "Skipping unreadable incident entry" in caplog.text
    assert _open(incidents, reporter) is not None
