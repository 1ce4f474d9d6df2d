from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from PySide6.QtCore import Signal
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from tilescope.core.catalog import CatalogEntry, PreviewCatalog
from tilescope.core.config import Settings
from tilescope.core.sources import LevelSource
from tilescope.ui.colors import PickerColors
from tilescope.ui.level_cards import LevelGridWidget

logger = logging.getLogger(__name__)


class LevelPickerWindow(QMainWindow):
    """Window listing level previews with Select and Cancel actions.

    Emits ``level_chosen`` once, with the chosen path or None.
    """

    level_chosen = Signal(object)

    def __init__(self, source: LevelSource, settings: Optional[Settings] = None) -> None:
        super().__init__()
        self._settings = settings or Settings()
        self._catalog = PreviewCatalog(
            source,
            self._settings,
            on_entries=self._on_entries,
            on_thumbnail=self._on_thumbnail,
            on_selected=self._on_selected,
        )
        self._load_task: Optional[asyncio.Task] = None
        self._finished = False
        self._closing = False

        self._status_label: Optional[QLabel] = None
        self._grid: Optional[LevelGridWidget] = None

        self.setWindowTitle("Select Level")
        self._build_ui()

    @property
    def catalog(self) -> PreviewCatalog:
        return self._catalog

    def _build_ui(self) -> None:
        root = QWidget()
        root.setObjectName("pickerRoot")
        root.setStyleSheet(
            f"""
            QWidget#pickerRoot {{
                background: qlineargradient(x1:0, y1:0, x2:0, y2:1,
                    stop:0 {PickerColors.BG_TOP},
                    stop:1 {PickerColors.BG_BOTTOM}
                );
            }}
            QLabel#pickerTitle {{
                color: {PickerColors.PRIMARY_DARK};
                font-size: 20px;
                font-weight: 900;
            }}
            QLabel#pickerStatus {{
                color: {PickerColors.TEXT_SECONDARY};
                font-size: 12px;
            }}
            QPushButton {{
                background: {PickerColors.PRIMARY};
                color: #ffffff;
                border: none;
                border-radius: 8px;
                padding: 6px 18px;
                font-weight: 800;
            }}
            QPushButton:hover {{
                background: {PickerColors.PRIMARY_LIGHT};
            }}
            """
        )
        layout = QVBoxLayout(root)
        layout.setContentsMargins(20, 16, 20, 16)
        layout.setSpacing(12)

        title = QLabel("Select Level")
        title.setObjectName("pickerTitle")
        layout.addWidget(title)

        self._status_label = QLabel("Loading...")
        self._status_label.setObjectName("pickerStatus")
        layout.addWidget(self._status_label)

        self._grid = LevelGridWidget(on_level_clicked=self._on_level_clicked)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.Shape.NoFrame)
        scroll.setStyleSheet("background: transparent;")
        scroll.setWidget(self._grid)
        layout.addWidget(scroll, 1)

        actions = QHBoxLayout()
        actions.addStretch(1)
        confirm_btn = QPushButton("Select")
        confirm_btn.setObjectName("pickerConfirm")
        confirm_btn.clicked.connect(self._catalog.confirm)
        cancel_btn = QPushButton("Cancel")
        cancel_btn.setObjectName("pickerCancel")
        cancel_btn.clicked.connect(self._catalog.cancel)
        actions.addWidget(confirm_btn)
        actions.addWidget(cancel_btn)
        layout.addLayout(actions)

        self.setCentralWidget(root)
        self.resize(760, 560)

    def start_loading(self, directory: Optional[str] = None) -> asyncio.Task:
        """Browse ``directory`` and load its levels on the running event loop."""
        self._load_task = asyncio.ensure_future(self._catalog.open_directory(directory))
        self._load_task.add_done_callback(self._on_load_done)
        return self._load_task

    def _on_load_done(self, task: asyncio.Task) -> None:
        self._load_task = None
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Could not load levels: %s", error)
            if self._status_label is not None:
                self._status_label.setText(f"Could not load levels: {error}")

    def _on_entries(self, entries: List[CatalogEntry]) -> None:
        if self._grid is not None:
            self._grid.set_entries(entries)
        if self._status_label is not None:
            missing = sum(1 for e in entries if e.data is None)
            text = f"{len(entries)} level(s)"
            if missing:
                text += f", {missing} without level data"
            self._status_label.setText(text)

    def _on_thumbnail(self, entry: CatalogEntry) -> None:
        if self._grid is not None:
            self._grid.update_entry(entry)

    def _on_level_clicked(self, path: str) -> None:
        if self._finished:
            return
        self._catalog.select(path)
        if self._grid is not None and not self._finished:
            self._grid.refresh_selection(self._catalog.selected_path)

    def _on_selected(self, path: Optional[str]) -> None:
        if self._finished:
            return
        self._finished = True
        if self._grid is not None:
            self._grid.refresh_selection(None)
        self.level_chosen.emit(path)
        if not self._closing:
            self.close()

    def closeEvent(self, event: QCloseEvent) -> None:
        """Closing the window without choosing counts as a cancel."""
        self._closing = True
        if not self._finished:
            self._catalog.cancel()
        if self._load_task is not None:
            self._load_task.cancel()
        self._catalog.close()
        super().closeEvent(event)
