"""Entry point for the SquareLabels demo: a playable board with coordinate labels."""

import sys
from PyQt6.QtWidgets import QApplication

from squarelabels.config.config_loader import ConfigLoader
from squarelabels.services.error_handler import ErrorHandler
from squarelabels.services.logging_service import LoggingService
from squarelabels.views.demo_window import DemoWindow


def main() -> None:
    """Run the SquareLabels demo."""
    # Setup global exception handler for uncaught exceptions
    ErrorHandler.setup_exception_handler()

    try:
        app = QApplication(sys.argv)
        app.setApplicationName("SquareLabels")
        app.setOrganizationName("SquareLabels")

        # Load configuration with strict validation
        loader = ConfigLoader()
        config = loader.load()
        LoggingService.get_instance(config)

        window = DemoWindow(config)
        window.show()

        sys.exit(app.exec())
    except Exception as e:
        ErrorHandler.handle_fatal_error(e, "Application execution")


if __name__ == "__main__":
    main()
