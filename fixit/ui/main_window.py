from PyQt5 import QtWidgets

from ..core.models import PRIORITIES, STATUSES, Incident, User
from ..core.reports import TIME_RANGES, build_report, can_view_reports, filter_incidents, relative_time
from ..core.services import Services
from .incident_detail import IncidentDetailDialog
from .incident_form import IncidentFormDialog
from .labels import TIME_RANGE_LABELS, priority_label, status_label

_COLUMNS = ("ID", "Title", "Status", "Priority", "Department", "Created by", "Assignee", "Opened")


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, services: Services, current_user: User) -> None:
        super().__init__()
        self.setWindowTitle(f"FixIt Helpdesk - {current_user.name}")
        self.resize(1000, 640)
        self._services = services
        self._current_user = current_user
        self._shown: list[Incident] = []
        self.logged_out = False
        self._setup_ui()
        self.refresh()

    def _setup_ui(self) -> None:
        tabs = QtWidgets.QTabWidget()
        tabs.addTab(self._build_incidents_tab(), "Incidents")
        if can_view_reports(self._current_user):
            tabs.addTab(self._build_reports_tab(), "Reports")
        self.setCentralWidget(tabs)

        toolbar = self.addToolBar("Session")
        toolbar.setMovable(False)
        logout_action = toolbar.addAction("Log out")
        logout_action.triggered.connect(lambda _checked: self._on_logout())

    def _build_incidents_tab(self) -> QtWidgets.QWidget:
        page = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(page)

        filters = QtWidgets.QHBoxLayout()
        self.search = QtWidgets.QLineEdit()
        self.search.setPlaceholderText("Search by id, title, department or requester")
        self.search.textChanged.connect(lambda _text: self.refresh())
        self.status_filter = self._filter_combo(STATUSES, status_label)
        self.priority_filter = self._filter_combo(PRIORITIES, priority_label)
        self.department_filter = QtWidgets.QComboBox()
        self.department_filter.addItem("All departments", "all")
        self.department_filter.currentIndexChanged.connect(lambda _index: self.refresh())
        filters.addWidget(self.search, 1)
        filters.addWidget(self.status_filter)
        filters.addWidget(self.priority_filter)
        filters.addWidget(self.department_filter)

        self.table = QtWidgets.QTableWidget(0, len(_COLUMNS))
        self.table.setHorizontalHeaderLabels(_COLUMNS)
        self.table.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.table.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.table.horizontalHeader().setStretchLastSection(True)
        self.table.doubleClicked.connect(lambda _index: self._on_open_details())

        buttons = QtWidgets.QHBoxLayout()
        if self._current_user.role == "user":
            new_btn = QtWidgets.QPushButton("New incident")
            new_btn.clicked.connect(lambda _checked: self._on_new_incident())
            buttons.addWidget(new_btn)
        details_btn = QtWidgets.QPushButton("Details")
        details_btn.clicked.connect(lambda _checked: self._on_open_details())
        refresh_btn = QtWidgets.QPushButton("Refresh")
        refresh_btn.clicked.connect(lambda _checked: self.refresh())
        buttons.addWidget(details_btn)
        buttons.addStretch(1)
        buttons.addWidget(refresh_btn)

        layout.addLayout(filters)
        layout.addWidget(self.table, 1)
        layout.addLayout(buttons)
        return page

    def _build_reports_tab(self) -> QtWidgets.QWidget:
        page = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(page)

        self.time_range = QtWidgets.QComboBox()
        for time_range in TIME_RANGES:
            self.time_range.addItem(TIME_RANGE_LABELS[time_range], time_range)
        self.time_range.currentIndexChanged.connect(lambda _index: self._render_report())

        self.metrics = QtWidgets.QFormLayout()
        self.metric_labels: dict[str, QtWidgets.QLabel] = {}
        for key, caption in (
            ("total", "Total incidents"),
            ("resolution_rate", "Resolution rate"),
            ("open", "Open"),
            ("in_progress", "In progress"),
            ("resolved", "Resolved"),
            ("closed", "Closed"),
            ("high_priority", "High priority"),
            ("medium_priority", "Medium priority"),
            ("low_priority", "Low priority"),
        ):
            label = QtWidgets.QLabel("0")
            self.metric_labels[key] = label
            self.metrics.addRow(caption, label)

        self.departments = QtWidgets.QListWidget()

        layout.addWidget(self.time_range)
        layout.addLayout(self.metrics)
        layout.addWidget(QtWidgets.QLabel("Top departments"))
        layout.addWidget(self.departments, 1)
        return page

    def _filter_combo(self, values, label) -> QtWidgets.QComboBox:
        combo = QtWidgets.QComboBox()
        combo.addItem("All", "all")
        for value in values:
            combo.addItem(label(value), value)
        combo.currentIndexChanged.connect(lambda _index: self.refresh())
        return combo

    def refresh(self) -> None:
        incidents = self._services.incidents.list_incidents()
        self._sync_departments(incidents)
        self._shown = filter_incidents(
            incidents,
            query=self.search.text(),
            status=self.status_filter.currentData(),
            priority=self.priority_filter.currentData(),
            department=self.department_filter.currentData(),
        )

        self.table.setRowCount(len(self._shown))
        for row, incident in enumerate(self._shown):
            values = (
                incident.incident_id,
                incident.title,
                status_label(incident.status),
                priority_label(incident.priority),
                incident.department,
                incident.created_by.name,
                incident.assignee.initials if incident.assignee else "NA",
                relative_time(incident.created_at),
            )
            for column, value in enumerate(values):
                self.table.setItem(row, column, QtWidgets.QTableWidgetItem(value))

        if can_view_reports(self._current_user):
            self._render_report()

    def _sync_departments(self, incidents: list[Incident]) -> None:
        selected = self.department_filter.currentData()
        departments = sorted({incident.department for incident in incidents if incident.department})
        self.department_filter.blockSignals(True)
        self.department_filter.clear()
        self.department_filter.addItem("All departments", "all")
        for department in departments:
            self.department_filter.addItem(department, department)
        index = self.department_filter.findData(selected)
        self.department_filter.setCurrentIndex(max(index, 0))
        self.department_filter.blockSignals(False)

    def _render_report(self) -> None:
        report = build_report(self._services.incidents.list_incidents(), self.time_range.currentData())
        for key, label in self.metric_labels.items():
            value = getattr(report, key)
            label.setText(f"{value}%" if key == "resolution_rate" else str(value))
        self.departments.clear()
        for department, count in report.top_departments:
            self.departments.addItem(f"{department}: {count}")

    def _selected_incident(self) -> Incident | None:
        row = self.table.currentRow()
        if row < 0 or row >= len(self._shown):
            return None
        return self._services.incidents.get(self._shown[row].incident_id)

    def _on_new_incident(self) -> None:
        dialog = IncidentFormDialog(self._services.incidents, self._current_user, self)
        if dialog.exec_() == QtWidgets.QDialog.Accepted:
            incident = dialog.get_created_incident()
            self.statusBar().showMessage(f"Incident {incident.incident_id} created", 5000)
            self.refresh()

    def _on_open_details(self) -> None:
        incident = self._selected_incident()
        if incident is None:
            QtWidgets.QMessageBox.information(self, "Incidents", "Select an incident first.")
            self.refresh()
            return
        dialog = IncidentDetailDialog(self._services, incident, self._current_user, self)
        dialog.exec_()
        if dialog.deleted:
            self.statusBar().showMessage(f"Incident {incident.incident_id} deleted", 5000)
        self.refresh()

    def _on_logout(self) -> None:
        self._services.auth.logout()
        self.logged_out = True
        self.close()
