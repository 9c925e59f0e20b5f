"""
bubblelevel - Main Application
Qt GUI: bubble level screen and settings screen.
"""

import time
from typing import Optional

import numpy as np

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QGridLayout, QLabel, QPushButton, QTabWidget,
)
from PyQt6.QtCore import Qt, QTimer, pyqtSignal, QObject
from PyQt6.QtGui import QColor

# PyQtGraph for the level ring and bubble
import pyqtgraph as pg
pg.setConfigOptions(antialias=True, useOpenGL=False)

from config import Config
from geometry import Offset, CENTER
from level_session import LevelSession
from logging_utils import log_event
from screen_wiring import (
    LEVEL_TAB_TITLE,
    SETTINGS_TAB_TITLE,
    aligned_flash_deadline,
    apply_color_choice,
    readout_text,
    ring_pen_color,
    swatch_style,
    sync_session_to_tab,
)


class SignalBridge(QObject):
    """Bridge for thread-safe signal emission"""
    aligned = pyqtSignal(object)
    status_changed = pyqtSignal(str, bool)


class LevelCanvas(pg.PlotWidget):
    """Level ring with the bubble, in screen pixels (y grows downward)"""

    def __init__(self, travel_radius: float, indicator_radius: float,
                 color: str, parent=None):
        super().__init__(parent)

        self.travel_radius = travel_radius
        self.indicator_radius = indicator_radius

        self.setBackground('w')
        self.setMouseEnabled(x=False, y=False)
        self.setMenuEnabled(False)
        self.setAspectLocked(True)
        self.hideAxis('left')
        self.hideAxis('bottom')
        self.invertY(True)

        span = travel_radius * 1.15
        self.setXRange(-span, span, padding=0)
        self.setYRange(-span, span, padding=0)

        # Ring
        theta = np.linspace(0, 2 * np.pi, 200)
        self.ring = pg.PlotCurveItem(
            travel_radius * np.cos(theta),
            travel_radius * np.sin(theta),
            pen=pg.mkPen(ring_pen_color(False), width=2),
        )
        self.addItem(self.ring)

        # Crosshairs
        self.addItem(pg.InfiniteLine(pos=0, angle=0, pen=pg.mkPen('#cccccc', width=0.5)))
        self.addItem(pg.InfiniteLine(pos=0, angle=90, pen=pg.mkPen('#cccccc', width=0.5)))

        # Bubble, sized in data units so it scales with the ring
        self.bubble = pg.ScatterPlotItem(
            size=2 * indicator_radius, pxMode=False, pen=None,
            brush=pg.mkBrush(QColor(color)),
        )
        self.addItem(self.bubble)
        self._flashing = False
        self.update_bubble(CENTER)

    def update_bubble(self, offset: Offset):
        self.bubble.setData([offset.x], [offset.y])

    def set_bubble_color(self, color: str):
        self.bubble.setBrush(pg.mkBrush(QColor(color)))

    def set_flash(self, flashing: bool):
        if flashing == self._flashing:
            return
        self._flashing = flashing
        self.ring.setPen(pg.mkPen(ring_pen_color(flashing), width=3 if flashing else 2))


class BubbleLevelWindow(QMainWindow):
    """Main application window"""

    LEVEL_TAB = 0
    SETTINGS_TAB = 1

    def __init__(self, config: Optional[Config] = None):
        super().__init__()

        self.config = config or Config()
        self.setWindowTitle("Bubble Level")
        self.setMinimumSize(320, 480)
        self.resize(420, 640)

        self.signals = SignalBridge()
        self.session = LevelSession(
            self.config,
            feedback_callback=self.signals.aligned.emit,
            status_callback=self.signals.status_changed.emit,
        )

        self._flash_until = 0.0
        self._pending_color = self.session.indicator_color
        self._swatches: dict[str, QPushButton] = {}

        self._setup_ui()

        self.signals.aligned.connect(self._on_aligned)
        self.signals.status_changed.connect(self._on_status_change)

        # Render clock, independent of the sensor interval
        self.render_timer = QTimer()
        self.render_timer.timeout.connect(self._on_render_tick)
        self.render_timer.start(self.config.display.frame_interval_ms)

        # Start measuring once the event loop is running
        QTimer.singleShot(0, lambda: self._on_tab_changed(self.tabs.currentIndex()))

    # ------------------------------------------------------------------
    # UI
    # ------------------------------------------------------------------

    def _setup_ui(self):
        self.tabs = QTabWidget()
        self.tabs.addTab(self._build_level_tab(), LEVEL_TAB_TITLE)
        self.tabs.addTab(self._build_settings_tab(), SETTINGS_TAB_TITLE)
        self.tabs.currentChanged.connect(self._on_tab_changed)
        self.setCentralWidget(self.tabs)

    def _build_level_tab(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        tilt = self.config.tilt
        self.canvas = LevelCanvas(tilt.travel_radius, tilt.indicator_radius, self.session.indicator_color)
        side = int(tilt.travel_radius * 2.5)
        self.canvas.setFixedSize(side, side)
        layout.addWidget(self.canvas, alignment=Qt.AlignmentFlag.AlignCenter)

        self.x_label = QLabel("X: 0.00")
        self.y_label = QLabel("Y: 0.00")
        for label in (self.x_label, self.y_label):
            label.setStyleSheet("font-size: 18px; margin: 10px;")
            layout.addWidget(label, alignment=Qt.AlignmentFlag.AlignCenter)

        self.status_label = QLabel("")
        self.status_label.setStyleSheet("color: gray;")
        layout.addWidget(self.status_label, alignment=Qt.AlignmentFlag.AlignCenter)
        return page

    def _build_settings_tab(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        title = QLabel("Bubble color:")
        title.setStyleSheet("font-size: 18px; margin-bottom: 10px;")
        layout.addWidget(title, alignment=Qt.AlignmentFlag.AlignCenter)

        grid = QGridLayout()
        for i, color in enumerate(self.config.display.palette):
            button = QPushButton()
            button.setToolTip(color)
            button.clicked.connect(lambda _checked=False, c=color: self._on_swatch_clicked(c))
            self._swatches[color] = button
            grid.addWidget(button, i // 3, i % 3)
        swatch_row = QHBoxLayout()
        swatch_row.addLayout(grid)
        layout.addLayout(swatch_row)
        self._refresh_swatches()

        save_button = QPushButton("Save")
        save_button.setStyleSheet(
            "QPushButton { background-color: #1EB1FC; color: #ffffff; font-size: 18px; "
            "font-weight: bold; padding: 15px; border-radius: 10px; }"
        )
        save_button.clicked.connect(self._on_save_settings)
        layout.addWidget(save_button, alignment=Qt.AlignmentFlag.AlignCenter)
        return page

    def _refresh_swatches(self):
        for color, button in self._swatches.items():
            button.setStyleSheet(swatch_style(color, color == self._pending_color))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _on_tab_changed(self, index: int):
        result = sync_session_to_tab(self.session, index, self.LEVEL_TAB)
        self.status_label.setText(result.status_text)
        if not result.running:
            self.canvas.update_bubble(CENTER)
            self.canvas.set_flash(False)

    def _on_render_tick(self):
        offset = self.session.tick()
        if offset is None:
            return
        self.canvas.update_bubble(offset)
        x_text, y_text = readout_text(self.session.latest_components)
        self.x_label.setText(x_text)
        self.y_label.setText(y_text)
        self.canvas.set_flash(time.perf_counter() < self._flash_until)

    def _on_aligned(self, sample):
        # Queued from the sensor thread; the session may have stopped since
        display = self.config.display
        deadline = aligned_flash_deadline(self.session, time.perf_counter(), display.feedback_flash_ms)
        if deadline is None:
            return
        self._flash_until = deadline
        if display.beep_on_aligned:
            QApplication.beep()

    def _on_status_change(self, message: str, running: bool):
        self.status_label.setText(message)

    def _on_swatch_clicked(self, color: str):
        self._pending_color = color
        self._refresh_swatches()

    def _on_save_settings(self):
        color = apply_color_choice(self.session, self._pending_color)
        self.canvas.set_bubble_color(color)
        self.tabs.setCurrentIndex(self.LEVEL_TAB)

    def closeEvent(self, event):
        """Stop the render clock and the sensor subscription before the UI is destroyed"""
        self.render_timer.stop()
        self.session.stop()
        log_event("INFO", "UI", "Closed")
        event.accept()
