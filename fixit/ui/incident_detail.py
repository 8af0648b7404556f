from PyQt5 import QtCore, QtWidgets

from ..core.incidents import can_assign, can_change_status, can_comment, can_delete
from ..core.models import STATUSES, Incident, User
from ..core.services import Services
from .labels import incident_header, status_label


class IncidentDetailDialog(QtWidgets.QDialog):
    def __init__(
        self,
        services: Services,
        incident: Incident,
        current_user: User,
        parent: QtWidgets.QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle(incident.incident_id)
        self.resize(560, 520)
        self._services = services
        self._incident = incident
        self._current_user = current_user
        self.deleted = False
        self._setup_ui()
        self._render()

    def _setup_ui(self) -> None:
        layout = QtWidgets.QVBoxLayout(self)

        self.header = QtWidgets.QLabel()
        self.header.setWordWrap(True)
        self.description = QtWidgets.QLabel()
        self.description.setWordWrap(True)
        self.description.setTextFormat(QtCore.Qt.PlainText)

        controls = QtWidgets.QFormLayout()
        self.status = QtWidgets.QComboBox()
        for status in STATUSES:
            self.status.addItem(status_label(status), status)
        self.status.activated.connect(self._on_status_selected)

        self.technician = QtWidgets.QComboBox()
        for technician in self._services.auth.list_technicians():
            self.technician.addItem(technician.name, technician)
        assign_btn = QtWidgets.QPushButton("Assign")
        assign_btn.clicked.connect(lambda _checked: self._on_assign())
        self.assign_row = QtWidgets.QWidget()
        assign_layout = QtWidgets.QHBoxLayout(self.assign_row)
        assign_layout.setContentsMargins(0, 0, 0, 0)
        assign_layout.addWidget(self.technician, 1)
        assign_layout.addWidget(assign_btn)

        controls.addRow("Status", self.status)
        controls.addRow("Assignee", self.assign_row)

        self.comments = QtWidgets.QListWidget()
        self.comment_text = QtWidgets.QPlainTextEdit()
        self.comment_text.setMaximumHeight(80)
        self.comment_btn = QtWidgets.QPushButton("Add comment")
        self.comment_btn.clicked.connect(lambda _checked: self._on_comment())

        self.message_label = QtWidgets.QLabel("")
        self.message_label.setWordWrap(True)

        btns = QtWidgets.QDialogButtonBox(QtWidgets.QDialogButtonBox.Close)
        self.delete_btn = btns.addButton("Delete", QtWidgets.QDialogButtonBox.DestructiveRole)
        self.delete_btn.clicked.connect(lambda _checked: self._on_delete())
        btns.rejected.connect(self.reject)

        layout.addWidget(self.header)
        layout.addWidget(self.description)
        layout.addLayout(controls)
        layout.addWidget(QtWidgets.QLabel("Comments"))
        layout.addWidget(self.comments, 1)
        layout.addWidget(self.comment_text)
        layout.addWidget(self.comment_btn)
        layout.addWidget(self.message_label)
        layout.addWidget(btns)

    def _render(self) -> None:
        incident = self._incident
        user = self._current_user
        self.header.setText(incident_header(incident))
        self.description.setText(incident.description)
        self.status.setCurrentIndex(STATUSES.index(incident.status))
        self.status.setEnabled(can_change_status(user, incident))
        self.assign_row.setEnabled(can_assign(user, incident))
        self.comment_text.setEnabled(can_comment(user, incident))
        self.comment_btn.setEnabled(can_comment(user, incident))
        self.delete_btn.setEnabled(can_delete(user, incident))

        self.comments.clear()
        for comment in incident.comments:
            self.comments.addItem(f"[{comment.created_at:%Y-%m-%d %H:%M}] {comment.created_by.name}: {comment.text}")

    def _apply(self, updated: Incident | None, success: str, failure: str) -> None:
        if updated is None:
            current = self._services.incidents.get(self._incident.incident_id)
            if current is not None:
                self._incident = current
            self._render()
            self._show_error(failure)
            return
        self._incident = updated
        self._render()
        self.message_label.setStyleSheet("color: green;")
        self.message_label.setText(success)

    def _show_error(self, message: str) -> None:
        self.message_label.setStyleSheet("color: red;")
        self.message_label.setText(message)

    def _on_status_selected(self, index: int) -> None:
        status = self.status.itemData(index)
        if status == self._incident.status:
            return
        updated = self._services.incidents.change_status(self._incident.incident_id, status, self._current_user)
        self._apply(updated, f"Status changed to {status_label(status)}", "Could not update the status.")

    def _on_assign(self) -> None:
        technician = self.technician.currentData()
        if technician is None:
            self._show_error("No technician available.")
            return
        updated = self._services.incidents.assign(self._incident.incident_id, technician, self._current_user)
        self._apply(updated, f"Assigned to {technician.name}", "Could not assign the incident.")

    def _on_comment(self) -> None:
        text = self.comment_text.toPlainText()
        try:
            updated = self._services.incidents.comment(self._incident.incident_id, text, self._current_user)
        except ValueError as exc:
            self._show_error(str(exc))
            return
        if updated is not None:
            self.comment_text.clear()
        self._apply(updated, "Comment added", "Could not add the comment.")

    def _on_delete(self) -> None:
        answer = QtWidgets.QMessageBox.question(
            self,
            "Delete incident",
            f"Delete {self._incident.incident_id}? This cannot be undone.",
        )
        if answer != QtWidgets.QMessageBox.Yes:
            return
        if not self._services.incidents.delete(self._incident.incident_id, self._current_user):
            self._show_error("Could not delete the incident.")
            return
        self.deleted = True
        self.accept()
