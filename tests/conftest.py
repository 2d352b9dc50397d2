"""Shared fixtures."""

import pytest


@pytest.fixture(scope="session")
def qapp():
    """Core application for tests that use Qt timers or watchers."""
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app
