"""
新增转发规则对话框

该模块提供了新增转发规则的对话框界面。
来源和目标列表由 CreateRuleWorkflow 在对话框打开后加载，加载失败时在对话框内显示错误。
"""

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QCheckBox, QComboBox, QDialog, QDialogButtonBox, QFormLayout, QLabel,
    QVBoxLayout
)

from forwarding_mgt.core.create_rule import CreateRuleWorkflow
from forwarding_mgt.core.modal import ModalSession, ModalState
from forwarding_mgt.utils.logging import get_logger

logger = get_logger(__name__)


class AddForwardingRuleDialog(QDialog):
    """新增转发规则对话框"""

    def __init__(self, session: ModalSession, parent=None):
        """
        初始化对话框

        Args:
            session: 对话框会话，交互逻辑为 CreateRuleWorkflow
            parent: 父窗口
        """
        super().__init__(parent)

        self.session = session
        self.workflow: CreateRuleWorkflow = session.controller
        self._closing = False
        self._populating = False

        self.setWindowTitle(f"添加{getattr(session.config, 'entity_label', '转发规则')}")
        self.setWindowModality(Qt.WindowModal)
        self._init_ui()
        self.resize(420, 220)

    def _init_ui(self):
        """初始化UI"""
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(20, 20, 20, 20)
        main_layout.setSpacing(15)

        form_layout = QFormLayout()
        form_layout.setLabelAlignment(Qt.AlignRight)
        form_layout.setSpacing(10)

        # 数据来源
        self.source_combo = QComboBox()
        self.source_combo.setMinimumWidth(260)
        self.source_combo.currentIndexChanged.connect(self._on_source_changed)
        form_layout.addRow("数据来源:", self.source_combo)

        # 转发目标
        self.destination_combo = QComboBox()
        self.destination_combo.setMinimumWidth(260)
        self.destination_combo.currentIndexChanged.connect(self._on_destination_changed)
        form_layout.addRow("转发目标:", self.destination_combo)

        # 保留影像
        self.keep_images_check = QCheckBox("转发后保留原始影像")
        self.keep_images_check.setChecked(self.workflow.draft.keep_images)
        self.keep_images_check.toggled.connect(self.workflow.set_keep_images)
        form_layout.addRow("", self.keep_images_check)

        main_layout.addLayout(form_layout)

        # 加载和错误提示
        self.hint_label = QLabel("正在加载来源和目标...")
        self.hint_label.setStyleSheet("color: #666666; font-size: 12px;")
        main_layout.addWidget(self.hint_label)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #ff4d4f;")
        self.error_label.setWordWrap(True)
        self.error_label.setVisible(False)
        main_layout.addWidget(self.error_label)

        self.button_box = QDialogButtonBox(QDialogButtonBox.Cancel | QDialogButtonBox.Ok)
        self.button_box.button(QDialogButtonBox.Ok).setText("添加")
        self.button_box.button(QDialogButtonBox.Cancel).setText("取消")
        self.button_box.accepted.connect(self.accept)
        self.button_box.rejected.connect(self.reject)
        main_layout.addWidget(self.button_box)

        self._update_ok_button()

    def refresh(self):
        """来源/目标列表或草稿变化后刷新界面"""
        self._populating = True
        try:
            if self.source_combo.count() != len(self.workflow.sources) + 1:
                self._fill_combo(self.source_combo, "请选择来源", self.workflow.sources,
                                 self.workflow.draft.source)
            if self.destination_combo.count() != len(self.workflow.destinations) + 1:
                self._fill_combo(self.destination_combo, "请选择目标", self.workflow.destinations,
                                 self.workflow.draft.destination)
            if self.keep_images_check.isChecked() != self.workflow.draft.keep_images:
                self.keep_images_check.blockSignals(True)
                self.keep_images_check.setChecked(self.workflow.draft.keep_images)
                self.keep_images_check.blockSignals(False)
        finally:
            self._populating = False

        self.hint_label.setText(
            f"共 {len(self.workflow.sources)} 个来源, {len(self.workflow.destinations)} 个目标"
        )
        if self.workflow.can_confirm():
            self.error_label.setVisible(False)
        self._update_ok_button()

    @staticmethod
    def _fill_combo(combo: QComboBox, placeholder: str, refs: list, current: Optional[object]):
        combo.clear()
        combo.addItem(placeholder, None)
        for ref in refs:
            combo.addItem(ref.display_name(), ref)
        if current is not None and current in refs:
            combo.setCurrentIndex(refs.index(current) + 1)

    def _on_source_changed(self, index: int):
        if self._populating or index < 0:
            return
        self.workflow.select_source(self.source_combo.itemData(index))

    def _on_destination_changed(self, index: int):
        if self._populating or index < 0:
            return
        self.workflow.select_destination(self.destination_combo.itemData(index))

    def _update_ok_button(self):
        self.button_box.button(QDialogButtonBox.Ok).setEnabled(self.session.can_confirm())

    def show_error(self, message: str):
        """在对话框内显示错误"""
        self.error_label.setText(message)
        self.error_label.setVisible(True)

    def accept(self):
        """确认按钮点击事件，校验失败时对话框保持打开"""
        if not self.session.confirm():
            logger.debug(f"新增规则校验未通过: {self.session.error}")

    def reject(self):
        if not self._closing:
            self.session.cancel()
        super().reject()

    def close_from_session(self):
        self._closing = True
        self.done(QDialog.Accepted if self.session.state == ModalState.RESOLVED else QDialog.Rejected)
