import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QLabel,
    QProgressBar,
    QStackedLayout,
    QVBoxLayout,
    QWidget,
)

from cryptoview.controllers import DetailScreenController
from cryptoview.formatting import NOT_AVAILABLE, display_symbol
from cryptoview.models import ChartSeries, Failed, Pending, Ready, ScreenState

pg.setConfigOptions(antialias=True, useOpenGL=False)
pg.setConfigOption("background", "#000000")
pg.setConfigOption("foreground", "#FFFFFF")


class CoinChartView(QWidget):
    """Renders the state of a DetailScreenController.

    Shows the coin's name, symbol and current price above a line chart of
    its recent price history, labelled by day.
    """

    def __init__(
        self,
        controller: DetailScreenController,
        vs_currency: str = "usd",
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._controller = controller
        self._vs_currency = vs_currency
        self._setup_ui()
        self._controller.add_listener(self.render_state)
        self.render_state(self._controller.state)

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        self._pages = QStackedLayout()

        busy = QProgressBar()
        busy.setRange(0, 0)  # Indeterminate
        busy.setTextVisible(False)
        self._pending_page = busy

        self._error_page = QWidget()
        error_layout = QVBoxLayout(self._error_page)
        for text in ("Error Fetching Data", "Try Again Later"):
            label = QLabel(text)
            label.setObjectName("title")
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            error_layout.addWidget(label)

        self._ready_page = QWidget()
        ready_layout = QVBoxLayout(self._ready_page)
        self._title_label = self._centered_label("title")
        self._symbol_label = self._centered_label("miniTitle")
        self._price_label = self._centered_label("miniTitle")
        chart_title = self._centered_label("title")
        chart_title.setText(f"{self._controller.history_days} Days Chart")
        self._empty_chart_label = self._centered_label("miniTitle")
        self._empty_chart_label.setText("No price history available.")

        self._plot = pg.PlotWidget()
        self._plot.showGrid(x=False, y=True, alpha=0.2)
        self._plot.setMouseEnabled(x=False, y=False)
        self._plot.hideButtons()
        self._curve = self._plot.plot(pen=pg.mkPen("#FFFFFF", width=2))

        for widget in (
            self._title_label,
            self._symbol_label,
            self._price_label,
            chart_title,
        ):
            ready_layout.addWidget(widget)
        ready_layout.addWidget(self._plot, stretch=1)
        ready_layout.addWidget(self._empty_chart_label)

        self._pages.addWidget(self._pending_page)
        self._pages.addWidget(self._error_page)
        self._pages.addWidget(self._ready_page)
        layout.addLayout(self._pages, stretch=1)

        footer = QLabel("Chart Provided by CoinGecko")
        footer.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(footer)

    def _centered_label(self, object_name: str) -> QLabel:
        label = QLabel()
        label.setObjectName(object_name)
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        return label

    def render_state(self, state: ScreenState) -> None:
        """Switches the visible page to match the controller's state."""
        if isinstance(state, Pending):
            self._pages.setCurrentWidget(self._pending_page)
        elif isinstance(state, Failed):
            self._pages.setCurrentWidget(self._error_page)
        elif isinstance(state, Ready):
            detail = state.payload.detail
            price = detail.price_in(self._vs_currency)
            self._title_label.setText(f"- {detail.name} -")
            self._symbol_label.setText(f"[{display_symbol(detail.symbol)}]")
            self._price_label.setText(
                f"Current Price: ${price}" if price is not None else NOT_AVAILABLE
            )
            series = self._controller.chart_series()
            self._draw(series or ChartSeries())
            self._pages.setCurrentWidget(self._ready_page)

    def _draw(self, series: ChartSeries) -> None:
        """Plots the series; an empty series means there is no chart to draw."""
        if series.is_empty:
            self._curve.setData([], [])
            self._plot.hide()
            self._empty_chart_label.show()
            return

        x = np.arange(len(series), dtype=float)
        y = np.array([float(v) for v in series.values])
        self._curve.setData(x, y)
        self._plot.getAxis("bottom").setTicks([list(enumerate(series.labels))])
        self._plot.autoRange()
        self._empty_chart_label.hide()
        self._plot.show()
