"""Pytest configuration: quiet logging and an offscreen QApplication."""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from squarelabels.services.logging_service import LoggingService


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Disable console and file logging for the whole test session."""
    service = LoggingService.get_instance({
        'logging': {'console': {'enabled': False}, 'file': {'enabled': False}}
    })
    yield service
    service.shutdown()


@pytest.fixture(scope="session")
def qapp():
    """Shared QApplication on the offscreen platform."""
    from PyQt6.QtWidgets import QApplication
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app
