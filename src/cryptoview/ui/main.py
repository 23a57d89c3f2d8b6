import asyncio
import sys
from pathlib import Path

import httpx
from loguru import logger
from PySide6.QtCore import Slot
from PySide6.QtGui import QAction, QCloseEvent
from PySide6.QtWidgets import QApplication, QMainWindow, QStackedWidget

from cryptoview.adapters.coingecko import CoinGeckoAdapter
from cryptoview.config import settings
from cryptoview.controllers import DetailScreenController, ListScreenController
from cryptoview.logging_config import setup_logging
from cryptoview.models import DETAILS_ROUTE, HistoryInterval, NavigationRequest
from cryptoview.ui.qt_asyncio_integration import run_with_asyncio
from cryptoview.ui.views.chart_view import CoinChartView
from cryptoview.ui.views.coin_list_view import CoinListView

STYLE_SHEET = """
QMainWindow, QWidget { background-color: #000000; color: #FFFFFF; }
QLabel#title { font-size: 24px; font-weight: bold; }
QLabel#miniTitle { font-size: 16px; }
QLabel#coinName { font-size: 18px; font-weight: bold; }
QFrame#coinRow {
    border: 1px solid #DDDDDD; border-radius: 10px; background-color: #1A1A1A;
}
"""


class MainWindow(QMainWindow):
    """The main application window: a list screen and a detail screen."""

    def __init__(self) -> None:
        super().__init__()
        self._http_client = httpx.AsyncClient(
            http2=True,
            timeout=settings.api.request_timeout_s,
            follow_redirects=True,
        )
        self._source = CoinGeckoAdapter(self._http_client, settings.api)
        self._list_controller = ListScreenController(
            self._source,
            navigate=self._on_navigate,
            timeout_s=settings.api.activation_timeout_s,
        )
        self._detail_controller: DetailScreenController | None = None
        self._detail_view: CoinChartView | None = None
        self._closed = asyncio.Event()
        self._shutdown_task: asyncio.Task[None] | None = None

        self._setup_ui()

    def _setup_ui(self) -> None:
        """Sets up the window, toolbar and the screen stack."""
        self.setWindowTitle("Welcome to CryptoView")
        self.resize(480, 800)
        self.setStyleSheet(STYLE_SHEET)

        self._stack = QStackedWidget(self)
        self._list_view = CoinListView(self._list_controller, self)
        self._stack.addWidget(self._list_view)
        self.setCentralWidget(self._stack)

        toolbar = self.addToolBar("Navigation")
        self._back_action = QAction("Back", self)
        self._back_action.triggered.connect(self._go_back)
        self._back_action.setEnabled(False)
        toolbar.addAction(self._back_action)

        refresh_action = QAction("Refresh", self)
        refresh_action.triggered.connect(self._refresh_list)
        toolbar.addAction(refresh_action)

    def start(self) -> None:
        """Activates the list screen. Requires a running event loop."""
        self._list_controller.activate()

    def _on_navigate(self, request: NavigationRequest) -> None:
        """Handles navigation requests emitted by the list controller."""
        if request.route != DETAILS_ROUTE:
            logger.warning(f"Ignoring navigation to unknown route '{request.route}'.")
            return
        self._close_detail()

        controller = DetailScreenController(
            self._source,
            request.coin_id,
            history_days=settings.api.history_days,
            interval=HistoryInterval(settings.api.history_interval),
            chart_window=settings.chart.window_size,
            timeout_s=settings.api.activation_timeout_s,
        )
        view = CoinChartView(controller, settings.api.vs_currency, self)
        self._detail_controller = controller
        self._detail_view = view
        self._stack.addWidget(view)
        self._stack.setCurrentWidget(view)
        self._back_action.setEnabled(True)
        self.setWindowTitle(f"CryptoView - {request.coin_id}")
        controller.activate()

    def _close_detail(self) -> None:
        if self._detail_controller is not None:
            self._detail_controller.deactivate()
            self._detail_controller = None
        if self._detail_view is not None:
            self._stack.removeWidget(self._detail_view)
            self._detail_view.deleteLater()
            self._detail_view = None

    @Slot()
    def _go_back(self) -> None:
        self._close_detail()
        self._stack.setCurrentWidget(self._list_view)
        self._back_action.setEnabled(False)
        self.setWindowTitle("Welcome to CryptoView")

    @Slot()
    def _refresh_list(self) -> None:
        """Re-enters the list screen with a fresh activation."""
        self._go_back()
        self._list_controller.activate()

    async def _shutdown(self) -> None:
        """Ends all activations and closes the HTTP client."""
        logger.info("Initiating graceful shutdown...")
        self._close_detail()
        self._list_controller.deactivate()
        await self._http_client.aclose()
        self._closed.set()
        logger.success("Shutdown complete.")

    async def wait_closed(self) -> None:
        """Waits until the window has been closed and shut down."""
        await self._closed.wait()

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802
        """Overrides QMainWindow.closeEvent to trigger async shutdown."""
        logger.info("Close event triggered.")
        event.accept()
        self._shutdown_task = asyncio.create_task(self._shutdown())
        self._shutdown_task.add_done_callback(
            lambda _: QApplication.instance().quit()
        )


async def main_async() -> int:
    """The main async entry point for the application."""
    log_dir = (
        Path(settings.general.log_directory)
        if settings.general.log_directory
        else None
    )
    setup_logging(
        console_level=settings.general.log_level_console,
        file_level=settings.general.log_level_file,
        log_dir=log_dir,
    )

    main_window = MainWindow()
    main_window.show()
    main_window.start()
    await main_window.wait_closed()
    return 0


def main() -> None:
    """The synchronous entry point for the application."""
    try:
        exit_code = run_with_asyncio(main_async())
        sys.exit(exit_code)
    except Exception:
        logger.exception("An unhandled exception reached the top-level entry point.")
        sys.exit(1)


if __name__ == "__main__":
    main()
