from PyQt5 import QtWidgets

from ..core.auth import AuthError, AuthService, Registration
from ..core.models import User


class RegisterDialog(QtWidgets.QDialog):
    def __init__(self, auth: AuthService, parent: QtWidgets.QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Create account")
        self.setModal(True)
        self.resize(400, 260)
        self._auth = auth
        self._registered_user: User | None = None
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QtWidgets.QVBoxLayout(self)

        form = QtWidgets.QFormLayout()
        self.name = QtWidgets.QLineEdit()
        self.email = QtWidgets.QLineEdit()
        self.telephone = QtWidgets.QLineEdit()
        self.department = QtWidgets.QLineEdit()
        self.password = QtWidgets.QLineEdit()
        self.password.setEchoMode(QtWidgets.QLineEdit.Password)
        self.confirm = QtWidgets.QLineEdit()
        self.confirm.setEchoMode(QtWidgets.QLineEdit.Password)

        form.addRow("Name", self.name)
        form.addRow("Email", self.email)
        form.addRow("Telephone", self.telephone)
        form.addRow("Department", self.department)
        form.addRow("Password", self.password)
        form.addRow("Confirm password", self.confirm)

        self.error_label = QtWidgets.QLabel("")
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("color: red;")

        btns = QtWidgets.QDialogButtonBox()
        btns.setStandardButtons(QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel)
        btns.accepted.connect(self._on_register)
        btns.rejected.connect(self.reject)

        layout.addLayout(form)
        layout.addWidget(self.error_label)
        layout.addWidget(btns)

    def _on_register(self) -> None:
        if self.password.text() != self.confirm.text():
            self.error_label.setText("Passwords do not match.")
            return
        registration = Registration(
            name=self.name.text(),
            email=self.email.text(),
            password=self.password.text(),
            telephone=self.telephone.text().strip() or None,
            department=self.department.text().strip() or None,
        )
        try:
            self._registered_user = self._auth.register(registration)
        except (AuthError, ValueError) as exc:
            self.error_label.setText(str(exc))
            return
        self.accept()

    def get_registered_user(self) -> User:
        assert self._registered_user is not None
        return self._registered_user
