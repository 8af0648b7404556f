from PyQt5 import QtWidgets

from ..core.incidents import IncidentService
from ..core.models import PRIORITIES, Incident, User
from .labels import priority_label


class IncidentFormDialog(QtWidgets.QDialog):
    """Report form for regular users."""

    def __init__(
        self,
        incidents: IncidentService,
        current_user: User,
        parent: QtWidgets.QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Report an incident")
        self.setModal(True)
        self.resize(480, 360)
        self._incidents = incidents
        self._current_user = current_user
        self._created: Incident | None = None
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QtWidgets.QVBoxLayout(self)

        form = QtWidgets.QFormLayout()
        self.title = QtWidgets.QLineEdit()
        self.department = QtWidgets.QLineEdit(self._current_user.department or "")
        self.priority = QtWidgets.QComboBox()
        for priority in PRIORITIES:
            self.priority.addItem(priority_label(priority), priority)
        self.priority.setCurrentIndex(PRIORITIES.index("medium"))
        self.description = QtWidgets.QPlainTextEdit()

        form.addRow("Title", self.title)
        form.addRow("Department", self.department)
        form.addRow("Priority", self.priority)
        form.addRow("Description", self.description)

        self.error_label = QtWidgets.QLabel("")
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("color: red;")

        btns = QtWidgets.QDialogButtonBox()
        btns.setStandardButtons(QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel)
        btns.accepted.connect(self._on_submit)
        btns.rejected.connect(self.reject)

        layout.addLayout(form)
        layout.addWidget(self.error_label)
        layout.addWidget(btns)

    def _on_submit(self) -> None:
        try:
            incident = self._incidents.create(
                title=self.title.text(),
                description=self.description.toPlainText(),
                department=self.department.text().strip(),
                priority=self.priority.currentData(),
                actor=self._current_user,
            )
        except ValueError as exc:
            self.error_label.setText(str(exc))
            return
        if incident is None:
            self.error_label.setText("Could not create the incident. Please try again.")
            return
        self._created = incident
        self.accept()

    def get_created_incident(self) -> Incident:
        assert self._created is not None
        return self._created
