"""
删除确认对话框
"""

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QDialog, QDialogButtonBox, QLabel, QVBoxLayout

from forwarding_mgt.core.modal import ConfirmDeleteConfig, ModalSession, ModalState


class ConfirmDeleteDialog(QDialog):
    """确认删除选中的实体"""

    def __init__(self, session: ModalSession, parent=None):
        super().__init__(parent)
        self.session = session
        self._closing = False

        self.setWindowTitle("确认删除")
        self.setWindowModality(Qt.WindowModal)
        self._init_ui()

    def _init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(12)

        config = self.session.config
        message = config.message if isinstance(config, ConfirmDeleteConfig) else "确定要删除吗？"
        self.message_label = QLabel(message)
        self.message_label.setWordWrap(True)
        layout.addWidget(self.message_label)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #ff4d4f;")
        self.error_label.setWordWrap(True)
        self.error_label.setVisible(False)
        layout.addWidget(self.error_label)

        self.button_box = QDialogButtonBox(QDialogButtonBox.Cancel | QDialogButtonBox.Ok)
        self.button_box.button(QDialogButtonBox.Ok).setText("删除")
        self.button_box.button(QDialogButtonBox.Cancel).setText("取消")
        self.button_box.accepted.connect(self.accept)
        self.button_box.rejected.connect(self.reject)
        layout.addWidget(self.button_box)

    def show_error(self, message: str):
        self.error_label.setText(message)
        self.error_label.setVisible(True)

    def refresh(self):
        pass

    def accept(self):
        """确认按钮点击事件，对话框由调度方关闭"""
        self.session.confirm()

    def reject(self):
        if not self._closing:
            self.session.cancel()
        super().reject()

    def close_from_session(self):
        self._closing = True
        self.done(QDialog.Accepted if self.session.state == ModalState.RESOLVED else QDialog.Rejected)
