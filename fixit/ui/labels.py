import html

STATUS_LABELS = {
    "open": "Open",
    "in_progress": "In Progress",
    "resolved": "Resolved",
    "closed": "Closed",
}

PRIORITY_LABELS = {
    "low": "Low",
    "medium": "Medium",
    "high": "High",
    "critical": "Critical",
}

TIME_RANGE_LABELS = {
    "all": "All time",
    "today": "Today",
    "week": "Last 7 days",
    "month": "Last month",
    "quarter": "Last quarter",
}


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, "Unknown")


def priority_label(priority: str) -> str:
    return PRIORITY_LABELS.get(priority, "Normal")


def incident_header(incident) -> str:
    """Rich-text summary for the detail dialog; user text is escaped."""
    assignee = incident.assignee.name if incident.assignee else "Unassigned"
    return (
        f"<b>{html.escape(incident.title)}</b><br>"
        f"{status_label(incident.status)} | {priority_label(incident.priority)} | "
        f"{html.escape(incident.department)}<br>"
        f"Created by {html.escape(incident.created_by.name)} on {incident.created_at:%Y-%m-%d %H:%M}"
        f" | Assignee: {html.escape(assignee)}"
    )
