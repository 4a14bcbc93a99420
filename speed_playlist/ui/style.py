from __future__ import annotations


ACCENT = "#4fc3f7"


def load_qss() -> str:
    return f"""
*{{font-family:"Segoe UI";font-size:10.5pt;}}
QMainWindow{{background:#0e1116;}}
QWidget{{color:#e6edf3;}}
QFrame#Sidebar{{background:#090b0f;}}
QFrame#Card{{background:#161b22;border:1px solid #263041;border-radius:14px;}}
QLabel#Speed{{font-size:34pt;font-weight:800;color:{ACCENT};}}
QLabel#Title{{font-size:16pt;font-weight:700;}}
QLabel#Sub{{color:#8b949e;}}
QPushButton{{background:#1f2630;border:none;padding:8px 12px;border-radius:12px;}}
QPushButton:hover{{background:#2a3340;}}
QPushButton:pressed{{background:#333e4d;}}
QPushButton#Primary{{background:{ACCENT};color:#000;font-weight:700;border-radius:16px;padding:10px 16px;}}
QCheckBox{{spacing:8px;}}
QTableView{{background:transparent;border:none;gridline-color:#263041;}}
QHeaderView::section{{background:#11161d;color:#8b949e;padding:8px;border:none;border-bottom:1px solid #263041;}}
QTableView::item{{padding:6px;border-bottom:1px solid #1c232d;}}
QTableView::item:selected{{background:{ACCENT};color:#000;}}
QSlider::groove:horizontal{{height:4px;background:#30363d;border-radius:2px;}}
QSlider::handle:horizontal{{background:{ACCENT};width:12px;margin:-4px 0;border-radius:6px;}}
QPlainTextEdit{{background:#0b0e13;border:1px solid #263041;border-radius:12px;padding:8px;color:#c9d1d9;}}
"""
