import sys
from collections.abc import Coroutine
from typing import Any

from loguru import logger
from PySide6 import QtAsyncio
from PySide6.QtWidgets import QApplication


def run_with_asyncio(main_coro: Coroutine[Any, Any, int]) -> int:
    """Runs the application with Qt's event loop driving asyncio.

    The QApplication must exist before any widget is created, so it is set up
    here first. `QtAsyncio.run` then installs an asyncio event loop backed by
    the Qt event loop, schedules `main_coro` on it, and keeps running until
    the main window quits the application.

    Args:
        main_coro: The main coroutine of the application. It should build the
            UI and start the first screen activation.

    Returns:
        The exit code of the application.
    """
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    app.setApplicationName("CryptoView")
    # The main window quits the application itself once its shutdown is done.
    app.setQuitOnLastWindowClosed(False)

    logger.info("Starting the Qt application event loop with QtAsyncio.")
    result = QtAsyncio.run(main_coro, keep_running=True, quit_qapp=True)
    logger.info("Qt application event loop has finished.")
    return result if isinstance(result, int) else 0
