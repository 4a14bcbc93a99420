from __future__ import annotations

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt
from PySide6.QtGui import QFont

from speed_playlist.controller import PlaybackController
from speed_playlist.models import Track


class PlaylistTableModel(QAbstractTableModel):
    COLS = ("#", "Title", "Artist", "Preview")

    def __init__(self, playback: PlaybackController) -> None:
        super().__init__()
        self.playback = playback

    def _tracks(self) -> tuple[Track, ...]:
        return self.playback.session.playlist

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return len(self._tracks())

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return len(self.COLS)

    def headerData(
        self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole
    ):
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Horizontal:
            return self.COLS[section]
        return None

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):
        if not index.isValid():
            return None
        r = index.row()
        c = index.column()
        tracks = self._tracks()
        if r < 0 or r >= len(tracks):
            return None
        t = tracks[r]

        if role == Qt.DisplayRole:
            if c == 0:
                return str(r)
            if c == 1:
                return t.title
            if c == 2:
                return t.artist
            if c == 3:
                return "yes" if t.playable else "—"
        if role == Qt.FontRole and r == self.playback.session.current_index:
            f = QFont()
            f.setBold(True)
            return f
        if role == Qt.TextAlignmentRole:
            if c in (0, 3):
                return int(Qt.AlignCenter)
            return int(Qt.AlignVCenter | Qt.AlignLeft)
        return None

    def refresh(self) -> None:
        self.beginResetModel()
        self.endResetModel()
