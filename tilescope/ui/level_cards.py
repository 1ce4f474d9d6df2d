"""Level selection UI: LevelPreviewCard and LevelGridWidget."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QPixmap
from PySide6.QtWidgets import (
    QGraphicsDropShadowEffect,
    QGridLayout,
    QLabel,
    QVBoxLayout,
    QWidget,
)

from tilescope.core.catalog import CatalogEntry
from tilescope.ui.colors import PickerColors


class LevelPreviewCard(QWidget):
    """A clickable card showing one level's thumbnail and file name."""

    def __init__(
        self,
        entry: CatalogEntry,
        *,
        on_click: Callable[[str], None],
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._path = entry.path
        self._on_click = on_click
        self._selected = False

        self.setObjectName("levelPreviewCard")
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self.setAttribute(Qt.WidgetAttribute.WA_Hover, True)
        self.setCursor(Qt.PointingHandCursor)
        self.setToolTip(entry.path)

        self._preview = QLabel("Loading...")
        self._preview.setObjectName("levelPreviewImage")
        self._preview.setAlignment(Qt.AlignCenter)

        self._name = QLabel(entry.name)
        self._name.setObjectName("levelPreviewName")
        self._name.setAlignment(Qt.AlignCenter)
        self._name.setWordWrap(True)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 10, 10, 10)
        layout.setSpacing(8)
        layout.addWidget(self._preview, 0, Qt.AlignHCenter)
        layout.addWidget(self._name)

        shadow = QGraphicsDropShadowEffect(self)
        shadow.setBlurRadius(18)
        shadow.setOffset(0, 6)
        shadow.setColor(QColor(15, 23, 42, 60))
        self.setGraphicsEffect(shadow)

        self.set_entry(entry)

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_selected(self) -> bool:
        return self._selected

    def set_entry(self, entry: CatalogEntry) -> None:
        if entry.thumbnail is not None:
            pixmap = QPixmap.fromImage(entry.thumbnail)
            self._preview.setPixmap(pixmap)
            self._preview.setFixedSize(pixmap.size())
        if entry.data is None:
            self.setToolTip(f"{entry.path}\nNo level data")
        self.set_selected(entry.selected)

    def set_selected(self, selected: bool) -> None:
        self._selected = bool(selected)
        self._apply_styles()

    def _apply_styles(self) -> None:
        border = PickerColors.CARD_SELECTED if self._selected else PickerColors.CARD_BORDER
        name_color = PickerColors.CARD_SELECTED_TEXT if self._selected else PickerColors.TEXT_PRIMARY
        self.setStyleSheet(
            f"""
            QWidget#levelPreviewCard {{
                background: {PickerColors.CARD_BG};
                border-radius: 14px;
                border: 3px solid {border};
            }}
            QLabel#levelPreviewImage {{
                background: {PickerColors.PREVIEW_BG};
                color: {PickerColors.TEXT_MUTED};
                border-radius: 6px;
                min-width: 150px;
                min-height: 150px;
            }}
            QLabel#levelPreviewName {{
                color: {name_color};
                font-weight: 800;
                font-size: 12px;
            }}
            """
        )

    def mousePressEvent(self, event) -> None:
        # The default mouseDoubleClickEvent forwards here, so a double click
        # reaches the catalog as two quick selections, i.e. a confirm.
        if event.button() == Qt.MouseButton.LeftButton:
            self._on_click(self._path)
        super().mousePressEvent(event)


class LevelGridWidget(QWidget):
    """Lays LevelPreviewCards out in a grid, sorted by path."""

    def __init__(
        self,
        *,
        on_level_clicked: Callable[[str], None],
        columns: int = 4,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._on_level_clicked = on_level_clicked
        self._columns = max(1, columns)
        self._cards: Dict[str, LevelPreviewCard] = {}
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self.setStyleSheet("background: transparent;")

        self._layout = QGridLayout(self)
        self._layout.setContentsMargins(16, 16, 16, 16)
        self._layout.setSpacing(16)
        self._layout.setAlignment(Qt.AlignTop | Qt.AlignLeft)

    def cards(self) -> List[LevelPreviewCard]:
        return [self._cards[path] for path in sorted(self._cards)]

    def card(self, path: str) -> LevelPreviewCard:
        return self._cards[path]

    def set_entries(self, entries: List[CatalogEntry]) -> None:
        self.clear()
        for i, entry in enumerate(sorted(entries, key=lambda e: e.path)):
            card = LevelPreviewCard(entry, on_click=self._on_level_clicked, parent=self)
            self._cards[entry.path] = card
            self._layout.addWidget(card, i // self._columns, i % self._columns)

    def update_entry(self, entry: CatalogEntry) -> None:
        card = self._cards.get(entry.path)
        if card is not None:
            card.set_entry(entry)

    def refresh_selection(self, selected_path: Optional[str]) -> None:
        for path, card in self._cards.items():
            card.set_selected(path == selected_path)

    def clear(self) -> None:
        for card in self._cards.values():
            self._layout.removeWidget(card)
            card.deleteLater()
        self._cards = {}
