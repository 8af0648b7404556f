import logging
import sys

from dotenv import load_dotenv
from PyQt5 import QtWidgets

from .core.config import Settings, configure_logging
from .core.services import open_services
from .ui.login_dialog import LoginDialog
from .ui.main_window import MainWindow

logger = logging.getLogger(__name__)


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info("Using data directory %s", settings.data_dir)

    services = open_services(settings.data_dir)
    services.auth.seed_defaults()

    app = QtWidgets.QApplication(sys.argv)

    while True:
        user = services.auth.current_user()
        if user is None:
            login_dialog = LoginDialog(services.auth)
            if login_dialog.exec_() != QtWidgets.QDialog.Accepted:
                sys.exit(0)
            user = login_dialog.get_authenticated_user()

        window = MainWindow(services, current_user=user)
        window.show()
        app.exec_()
        if not window.logged_out:
            break


if __name__ == "__main__":
    main()
