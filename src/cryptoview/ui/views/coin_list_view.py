from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QProgressBar,
    QPushButton,
    QStackedLayout,
    QVBoxLayout,
    QWidget,
)

from cryptoview.controllers import ListScreenController
from cryptoview.formatting import (
    coin_title,
    format_change,
    format_market_cap,
    format_price,
)
from cryptoview.models import CoinSummary, Failed, Pending, Ready, ScreenState


class CoinRowWidget(QFrame):
    """One row of the ranked list: name, price figures and a chart button."""

    def __init__(
        self,
        coin: CoinSummary,
        controller: ListScreenController,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._coin = coin
        self._controller = controller
        self.setObjectName("coinRow")

        layout = QHBoxLayout(self)
        info = QVBoxLayout()

        name_label = QLabel(coin_title(coin.name, coin.symbol))
        name_label.setObjectName("coinName")
        info.addWidget(name_label)
        info.addWidget(QLabel(f"Current Price: {format_price(coin.current_price)}"))
        info.addWidget(QLabel(f"Market Cap: {format_market_cap(coin.market_cap)}"))
        info.addWidget(
            QLabel(f"24h Change: {format_change(coin.price_change_percentage_24h)}")
        )
        layout.addLayout(info, stretch=1)

        chart_button = QPushButton("View Chart")
        chart_button.clicked.connect(self._on_view_chart)
        layout.addWidget(chart_button)

    @Slot()
    def _on_view_chart(self) -> None:
        self._controller.select_coin(self._coin.id)


class CoinListView(QWidget):
    """Renders the state of a ListScreenController."""

    def __init__(
        self, controller: ListScreenController, parent: QWidget | None = None
    ) -> None:
        super().__init__(parent)
        self._controller = controller
        self._setup_ui()
        self._controller.add_listener(self.render_state)
        self.render_state(self._controller.state)

    def _setup_ui(self) -> None:
        """Creates the pending, failed and ready pages and the footer."""
        layout = QVBoxLayout(self)

        self._pages = QStackedLayout()

        busy = QProgressBar()
        busy.setRange(0, 0)  # Indeterminate
        busy.setTextVisible(False)
        self._pending_page = busy

        self._error_label = QLabel()
        self._error_label.setObjectName("title")
        self._error_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._error_label.setWordWrap(True)

        self._list_widget = QListWidget()
        self._list_widget.setSpacing(6)

        self._pages.addWidget(self._pending_page)
        self._pages.addWidget(self._error_label)
        self._pages.addWidget(self._list_widget)
        layout.addLayout(self._pages, stretch=1)

        footer = QLabel("Powered by CoinGecko")
        footer.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(footer)

    def render_state(self, state: ScreenState) -> None:
        """Switches the visible page to match the controller's state."""
        if isinstance(state, Pending):
            self._pages.setCurrentWidget(self._pending_page)
        elif isinstance(state, Failed):
            self._error_label.setText(state.message)
            self._pages.setCurrentWidget(self._error_label)
        elif isinstance(state, Ready):
            self._populate(state.payload)
            self._pages.setCurrentWidget(self._list_widget)

    def _populate(self, coins: list[CoinSummary]) -> None:
        self._list_widget.clear()
        for coin in coins:
            row = CoinRowWidget(coin, self._controller)
            item = QListWidgetItem(self._list_widget)
            item.setData(Qt.ItemDataRole.UserRole, coin.id)
            item.setSizeHint(row.sizeHint())
            self._list_widget.setItemWidget(item, row)
