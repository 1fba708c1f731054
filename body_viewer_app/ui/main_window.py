from __future__ import annotations

from typing import Optional

import cv2
import numpy as np
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from body_viewer_app.controller.tracking_controller import TrackingController
from body_viewer_app.mediapipe_source import MediaPipeFrameSource
from skeleton_core.frame_source import FrameSource
from skeleton_core.types import PoseName


def _bgr_to_qpixmap(frame_bgr: np.ndarray, max_w: int, max_h: int) -> QPixmap:
    """BGR 帧转 QPixmap 并按最大尺寸等比缩放。"""
    h, w = frame_bgr.shape[:2]
    rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
    qimg = QImage(rgb.data, w, h, rgb.strides[0], QImage.Format.Format_RGB888)
    pm = QPixmap.fromImage(qimg.copy())
    return pm.scaled(
        max_w,
        max_h,
        Qt.AspectRatioMode.KeepAspectRatio,
        Qt.TransformationMode.SmoothTransformation,
    )


class MainWindow(QMainWindow):
    def __init__(self, source: Optional[FrameSource] = None):
        """初始化主窗口并构造控制器。

        输入: source 可选帧来源，默认使用摄像头 + MediaPipe。
        作用: 搭建界面、绑定事件，并把帧来源交给控制器。
        """
        super().__init__()
        self.setWindowTitle("骨架跟踪（PySide6）")
        self.resize(900, 640)

        self._controller = TrackingController(self)
        self._controller.attach_source(source or MediaPipeFrameSource())

        self._build_ui()
        self._wire_events()

    def _build_ui(self) -> None:
        root = QWidget(self)
        self.setCentralWidget(root)

        self.btn_start = QPushButton("开始")
        self.btn_stop = QPushButton("停止")

        self.lbl_frame = QLabel("骨架画面")
        self.lbl_frame.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.lbl_frame.setMinimumSize(512, 424)
        self.lbl_frame.setStyleSheet("background-color: black; color: #cccccc;")

        self.lbl_poses = QLabel("姿态：--")
        self.lbl_poses.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter)

        grp_controls = QGroupBox("操作")
        controls_layout = QHBoxLayout(grp_controls)
        controls_layout.addWidget(self.btn_start)
        controls_layout.addWidget(self.btn_stop)
        controls_layout.addStretch(1)
        controls_layout.addWidget(self.lbl_poses)

        layout = QVBoxLayout(root)
        layout.addWidget(grp_controls)
        layout.addWidget(self.lbl_frame, 1)

        self._status = QStatusBar(self)
        self.setStatusBar(self._status)

    def _wire_events(self) -> None:
        self.btn_start.clicked.connect(self._on_start)
        self.btn_stop.clicked.connect(self._controller.stop)

    def _on_start(self) -> None:
        if self._controller.is_running:
            return
        self._controller.start()

    # ====== 供控制器调用（视图接口） ======

    def set_frame_image(self, frame_bgr: np.ndarray) -> None:
        self.lbl_frame.setPixmap(_bgr_to_qpixmap(frame_bgr, self.lbl_frame.width(), self.lbl_frame.height()))

    def set_poses(self, detected: list[PoseName]) -> None:
        text = "、".join(p.value for p in detected) if detected else "--"
        self.lbl_poses.setText(f"姿态：{text}")

    def show_error(self, title: str, message: str) -> None:
        QMessageBox.critical(self, title, message)

    def set_status(self, message: str, timeout_ms: int = 0) -> None:
        self.statusBar().showMessage(message, timeout_ms)

    def closeEvent(self, event) -> None:
        """窗口关闭钩子：先释放控制器与传感器，再关闭窗口。"""
        try:
            self._controller.close()
        finally:
            super().closeEvent(event)
