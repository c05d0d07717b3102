"""Qt host surface: status pill, token prompt and workspace change notifications."""

import logging
from pathlib import Path

from PySide6.QtCore import QFileSystemWatcher, QObject, QPoint, Qt, Signal
from PySide6.QtGui import QColor, QPainter, QPainterPath, QPen
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMessageBox,
    QWidget,
)

from cursor_meter.formatting import APP_LABEL, ERROR_GLYPH

logger = logging.getLogger(__name__)


class StatusWidget(QWidget):
    """Translucent always-on-top pill with the usage text and a detail tooltip."""

    refresh_requested = Signal()
    set_token_requested = Signal()

    def __init__(self):
        super().__init__()
        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.Tool
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setWindowTitle(APP_LABEL)
        self._drag_pos = QPoint()
        self._build_ui()

    def _build_ui(self):
        layout = QHBoxLayout(self)
        layout.setContentsMargins(14, 6, 10, 6)
        layout.setSpacing(8)

        self._text_label = QLabel(f"{APP_LABEL}: …")
        self._text_label.setStyleSheet("color: #d4d4e0; font-size: 11px;")
        self._text_label.setCursor(Qt.CursorShape.PointingHandCursor)
        self._text_label.mousePressEvent = lambda _: self.refresh_requested.emit()
        layout.addWidget(self._text_label)

        key_btn = QLabel("⚿")
        key_btn.setToolTip("Set session token")
        key_btn.setStyleSheet("color: #666680; font-size: 13px; padding: 0 2px;")
        key_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        key_btn.mousePressEvent = lambda _: self.set_token_requested.emit()
        layout.addWidget(key_btn)

        close_btn = QLabel("✕")
        close_btn.setStyleSheet("color: #666680; font-size: 12px; padding: 0 2px;")
        close_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        close_btn.mousePressEvent = lambda _: QApplication.quit()
        layout.addWidget(close_btn)

    # StatusView

    def set_text(self, text: str):
        self._text_label.setText(text)
        color = "#ef4444" if text.startswith(ERROR_GLYPH) else "#d4d4e0"
        self._text_label.setStyleSheet(f"color: {color}; font-size: 11px;")
        self.adjustSize()

    def set_tooltip(self, tooltip: str):
        self.setToolTip(tooltip)
        self._text_label.setToolTip(tooltip)

    def warn(self, message: str):
        QMessageBox.warning(self, APP_LABEL, message)

    def inform(self, message: str):
        QMessageBox.information(self, APP_LABEL, message)

    def text(self) -> str:
        return self._text_label.text()

    # Painting / dragging

    def paintEvent(self, event):
        p = QPainter(self)
        p.setRenderHint(QPainter.RenderHint.Antialiasing)

        path = QPainterPath()
        radius = self.height() / 2
        path.addRoundedRect(0, 0, self.width(), self.height(), radius, radius)
        p.fillPath(path, QColor(20, 20, 30, 200))

        p.setPen(QPen(QColor(80, 80, 100, 60), 1))
        p.drawPath(path)

        p.end()

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self._drag_pos = event.globalPosition().toPoint() - self.frameGeometry().topLeft()
            event.accept()

    def mouseMoveEvent(self, event):
        if event.buttons() & Qt.MouseButton.LeftButton:
            self.move(event.globalPosition().toPoint() - self._drag_pos)
            event.accept()


def prompt_for_token(parent: QWidget | None = None) -> str | None:
    """Masked input dialog; returns None when cancelled."""
    token, ok = QInputDialog.getText(
        parent,
        f"{APP_LABEL} - Authentication Required",
        "Enter your WorkosCursorSessionToken cookie value",
        QLineEdit.EchoMode.Password,
    )
    return token if ok else None


class WorkspaceWatcher(QObject):
    """Turns filesystem activity under the watched directories into editor-style notifications.

    A directory listing change (files created, renamed, swapped) counts as an
    edit; a write to a watched file counts as a save.
    """

    document_changed = Signal()
    document_saved = Signal()

    def __init__(self, directories: list[Path], parent: QObject | None = None):
        super().__init__(parent)
        self._watcher = QFileSystemWatcher(self)
        self._watcher.directoryChanged.connect(self._on_directory_changed)
        self._watcher.fileChanged.connect(self._on_file_changed)
        for directory in directories:
            self.watch(Path(directory))

    def watch(self, directory: Path):
        if not directory.is_dir():
            logger.warning("Not a directory, skipping watch: %s", directory)
            return
        self._watcher.addPath(str(directory))
        self._watch_files(directory)

    def _watch_files(self, directory: Path):
        known = set(self._watcher.files())
        new_files = [
            str(p) for p in directory.iterdir()
            if p.is_file() and not p.name.startswith(".") and str(p) not in known
        ]
        if new_files:
            self._watcher.addPaths(new_files)

    def _on_directory_changed(self, path: str):
        if Path(path).is_dir():
            self._watch_files(Path(path))
        self.document_changed.emit()

    def _on_file_changed(self, path: str):
        # Editors that save by rename drop the path from the watch list.
        if path not in self._watcher.files() and Path(path).exists():
            self._watcher.addPath(path)
        self.document_saved.emit()
