from __future__ import annotations

import sys
from pathlib import Path

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QFrame,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QMainWindow,
    QPlainTextEdit,
    QPushButton,
    QSlider,
    QTableView,
    QVBoxLayout,
    QWidget,
)

from speed_playlist.config import APP_TITLE, Settings
from speed_playlist.errors import NoPreviewAvailable, SpeedPlaylistError
from speed_playlist.ui.controller import AppController
from speed_playlist.ui.dialogs import show_info, show_warning
from speed_playlist.ui.models import PlaylistTableModel
from speed_playlist.ui.style import load_qss


class MainWindow(QMainWindow):
    def __init__(self, settings: Settings, config_file: Path) -> None:
        super().__init__()

        self.setWindowTitle(APP_TITLE)
        self.resize(1080, 720)
        self.setStyleSheet(load_qss())

        self._build_ui()

        # --- controller (SOURCE OF TRUTH) ---
        self.controller = AppController(
            settings=settings,
            config_file=config_file,
            on_ui_update=self._ui_refresh,
            on_log=self._log,
            on_status_text=self._set_status,
            on_now_playing=self._set_now_playing,
            on_speed=self._set_speed,
            on_error=self._show_error,
        )

        # restore prefs without re-saving them
        for w in (self.vol, self.auto_skip):
            w.blockSignals(True)
        self.vol.setValue(int(self.controller.volume * 100))
        self.auto_skip.setChecked(self.controller.auto_skip)
        for w in (self.vol, self.auto_skip):
            w.blockSignals(False)

        self._wire()

        # ------------------------------------------------------------------
        # MODEL
        # ------------------------------------------------------------------
        self.model = PlaylistTableModel(self.controller.playback)
        self.table.setModel(self.model)
        self.table.setSelectionBehavior(QTableView.SelectRows)
        self.table.setSelectionMode(QTableView.SingleSelection)
        self.table.verticalHeader().setVisible(False)

        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.Stretch)
        header.setSectionResizeMode(2, QHeaderView.Stretch)
        header.setSectionResizeMode(3, QHeaderView.ResizeToContents)

        # ------------------------------------------------------------------
        # TIMERS
        # ------------------------------------------------------------------
        self.ev_timer = QTimer(self)
        self.ev_timer.timeout.connect(self.controller.process_ui_events)
        self.ev_timer.start(120)

        self.wd_timer = QTimer(self)
        self.wd_timer.timeout.connect(self.controller.watchdog)
        self.wd_timer.start(450)

        self._ui_refresh()
        self.controller.start()

    # -------------------- UI --------------------
    def _build_ui(self) -> None:
        root = QWidget(self)
        self.setCentralWidget(root)

        outer = QHBoxLayout(root)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)

        # Sidebar: speed + settings
        self.sidebar = QFrame(objectName="Sidebar")
        self.sidebar.setFixedWidth(280)
        s = QVBoxLayout(self.sidebar)
        s.setContentsMargins(18, 18, 18, 18)
        s.setSpacing(12)

        brand = QLabel(APP_TITLE)
        brand.setStyleSheet("font-size:14pt;font-weight:800;")
        s.addWidget(brand)

        card = QFrame(objectName="Card")
        c = QVBoxLayout(card)
        c.setContentsMargins(14, 14, 14, 14)
        c.setSpacing(6)
        c.addWidget(QLabel("Current Speed", objectName="Sub"))
        self.speed = QLabel("0", objectName="Speed")
        c.addWidget(self.speed)
        c.addWidget(QLabel("MPH", objectName="Sub"))

        row_poll = QHBoxLayout()
        self.btn_start = QPushButton("Start")
        self.btn_stop = QPushButton("Stop")
        row_poll.addWidget(self.btn_start, 1)
        row_poll.addWidget(self.btn_stop, 1)
        c.addLayout(row_poll)
        s.addWidget(card)

        card2 = QFrame(objectName="Card")
        v = QVBoxLayout(card2)
        v.setContentsMargins(14, 14, 14, 14)
        v.setSpacing(10)
        v.addWidget(QLabel("Volume", objectName="Sub"))
        self.vol = QSlider(Qt.Horizontal)
        self.vol.setRange(0, 100)
        v.addWidget(self.vol)
        self.auto_skip = QCheckBox("Skip songs without preview")
        v.addWidget(self.auto_skip)
        self.status = QLabel("Idle", objectName="Sub")
        v.addWidget(self.status)
        s.addWidget(card2)
        s.addStretch(1)

        outer.addWidget(self.sidebar)

        # Main area
        main = QVBoxLayout()
        main.setContentsMargins(18, 18, 18, 18)
        main.setSpacing(12)

        np = QFrame(objectName="Card")
        npl = QVBoxLayout(np)
        npl.setContentsMargins(16, 16, 16, 16)
        npl.setSpacing(6)
        self.now_title = QLabel("—", objectName="Title")
        self.now_sub = QLabel("0 tracks in playlist", objectName="Sub")
        npl.addWidget(QLabel("Now Playing", objectName="Sub"))
        npl.addWidget(self.now_title)
        npl.addWidget(self.now_sub)

        tr = QHBoxLayout()
        tr.setSpacing(10)
        self.btn_prev = QPushButton("Back")
        self.btn_play = QPushButton("Play/Pause")
        self.btn_play.setObjectName("Primary")
        self.btn_next = QPushButton("Next")
        self.btn_refresh = QPushButton("Get Songs")
        self.btn_link = QPushButton("Open link")
        for b in (self.btn_prev, self.btn_play, self.btn_next, self.btn_refresh, self.btn_link):
            tr.addWidget(b)
        npl.addLayout(tr)
        main.addWidget(np)

        qc = QFrame(objectName="Card")
        qcl = QVBoxLayout(qc)
        qcl.setContentsMargins(16, 16, 16, 16)
        qcl.setSpacing(10)
        qcl.addWidget(QLabel("Playlist (double click plays)", objectName="Sub"))
        self.table = QTableView()
        qcl.addWidget(self.table, 1)
        main.addWidget(qc, 1)

        lc = QFrame(objectName="Card")
        lcl = QVBoxLayout(lc)
        lcl.setContentsMargins(16, 16, 16, 16)
        lcl.addWidget(QLabel("Log", objectName="Sub"))
        self.log = QPlainTextEdit()
        self.log.setReadOnly(True)
        self.log.setMaximumBlockCount(600)
        self.log.setFixedHeight(140)
        lcl.addWidget(self.log)
        main.addWidget(lc)

        outer.addLayout(main, 1)

    def _wire(self) -> None:
        self.vol.valueChanged.connect(self._on_volume)
        self.vol.sliderReleased.connect(self.controller.save_prefs)
        self.auto_skip.toggled.connect(self.controller.set_auto_skip)

        self.btn_start.clicked.connect(self.controller.start)
        self.btn_stop.clicked.connect(self.controller.stop)

        self.btn_prev.clicked.connect(self.controller.prev_track)
        self.btn_play.clicked.connect(self.controller.play_pause)
        self.btn_next.clicked.connect(self.controller.next_track)
        self.btn_refresh.clicked.connect(self.controller.refresh_playlist)
        self.btn_link.clicked.connect(self.controller.open_current_link)

        self.table.doubleClicked.connect(lambda idx: self.controller.play_index(idx.row()))

    # -------------------- UI helpers --------------------
    def _log(self, msg: str) -> None:
        self.log.appendPlainText(msg)

    def _set_status(self, text: str) -> None:
        self.status.setText(text)

    def _set_speed(self, mph: float) -> None:
        self.speed.setText(str(round(mph)))

    def _set_now_playing(self, big: str, small: str) -> None:
        self.now_title.setText(big)
        self.now_sub.setText(small)

    def _ui_refresh(self) -> None:
        if not hasattr(self, "model"):
            return
        self.model.refresh()
        idx = self.controller.playback.session.current_index
        if idx is not None:
            self.table.selectRow(idx)
            self.table.scrollTo(self.model.index(idx, 0))

    def _on_volume(self) -> None:
        self.controller.set_volume(float(self.vol.value()) / 100.0)

    def _show_error(self, exc: SpeedPlaylistError) -> None:
        if isinstance(exc, NoPreviewAvailable):
            show_info(self, APP_TITLE, "No preview available for this song.")
        else:
            show_warning(self, APP_TITLE, str(exc))

    # -------------------- close --------------------
    def closeEvent(self, event) -> None:
        self.ev_timer.stop()
        self.wd_timer.stop()
        self.controller.close()
        event.accept()


def run_qt(settings: Settings, config_file: Path) -> None:
    app = QApplication.instance() or QApplication(sys.argv)
    win = MainWindow(settings, config_file)
    win.show()
    sys.exit(app.exec())
