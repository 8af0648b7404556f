from PyQt5 import QtWidgets

from ..core.auth import AuthError, AuthService
from ..core.models import User
from .register_dialog import RegisterDialog


class LoginDialog(QtWidgets.QDialog):
    def __init__(self, auth: AuthService, parent: QtWidgets.QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("FixIt - Login")
        self.setModal(True)
        self.resize(380, 200)
        self._auth = auth
        self._authenticated_user: User | None = None
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QtWidgets.QVBoxLayout(self)

        form = QtWidgets.QFormLayout()
        self.email = QtWidgets.QLineEdit()
        self.email.setPlaceholderText("you@email.com")
        self.password = QtWidgets.QLineEdit()
        self.password.setEchoMode(QtWidgets.QLineEdit.Password)

        form.addRow("Email", self.email)
        form.addRow("Password", self.password)

        self.message_label = QtWidgets.QLabel("")
        self.message_label.setWordWrap(True)
        self.message_label.setStyleSheet("color: red;")

        btns = QtWidgets.QDialogButtonBox()
        btns.setStandardButtons(QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel)
        register_btn = btns.addButton("Create account...", QtWidgets.QDialogButtonBox.ActionRole)
        register_btn.clicked.connect(lambda _checked: self._on_register())
        btns.accepted.connect(self._on_login)
        btns.rejected.connect(self.reject)

        layout.addLayout(form)
        layout.addWidget(self.message_label)
        layout.addWidget(btns)

    def _on_login(self) -> None:
        email = self.email.text().strip()
        password = self.password.text()
        try:
            user = self._auth.login(email, password)
        except AuthError as exc:
            self.message_label.setStyleSheet("color: red;")
            self.message_label.setText(str(exc))
            return
        self._authenticated_user = user
        self.accept()

    def _on_register(self) -> None:
        dialog = RegisterDialog(self._auth, self)
        if dialog.exec_() != QtWidgets.QDialog.Accepted:
            return
        user = dialog.get_registered_user()
        self.email.setText(user.email)
        self.password.clear()
        self.message_label.setStyleSheet("color: green;")
        self.message_label.setText("Account created. Log in to continue.")

    def get_authenticated_user(self) -> User:
        assert self._authenticated_user is not None
        return self._authenticated_user
