"""
转发规则管理面板

该模块提供了转发规则管理的UI界面，包括：
- 分页显示转发规则，点击表头排序
- 选中规则后执行批量操作（删除）
- 添加转发规则
"""

from typing import List, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QAbstractItemView, QHBoxLayout, QHeaderView, QLabel, QMessageBox, QPushButton,
    QSpinBox, QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget
)
from qasync import asyncSlot

from forwarding_mgt.core.exceptions import ActionFailed, ActionPartialFailure
from forwarding_mgt.core.list_controller import EntityListController, ListScreenState, LoadState
from forwarding_mgt.core.models import Page
from forwarding_mgt.utils.logging import get_logger

logger = get_logger(__name__)

# 列索引 -> 服务端排序字段
SORT_PROPERTIES = {
    0: "id",
    1: "source",
    2: "destination",
    3: "keepImages",
}

BUTTON_STYLE = """
    QPushButton {{
        background-color: {color};
        color: white;
        border: none;
        padding: 6px 12px;
        border-radius: 4px;
    }}
    QPushButton:hover {{
        background-color: {hover};
    }}
    QPushButton:disabled {{
        background-color: #d9d9d9;
    }}
"""


class ForwardingRulePanel(QWidget):
    """转发规则管理面板"""

    # 定义信号
    rule_added = Signal(int)       # 规则ID
    rules_removed = Signal(list)   # 规则ID列表

    def __init__(self, controller: EntityListController, parent=None):
        """初始化转发规则管理面板"""
        super().__init__(parent)

        self.controller = controller
        self._rendered_page: Optional[Page] = None
        self._rendering = False
        self._action_buttons = {}

        self._init_ui()
        self.controller.add_listener(self._on_state_changed)

    def _init_ui(self):
        """初始化UI"""
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(10, 10, 10, 10)
        main_layout.setSpacing(10)

        # 标题栏
        title_layout = QHBoxLayout()

        title_label = QLabel("转发规则")
        title_label.setStyleSheet("font-size: 16px; font-weight: bold;")
        title_layout.addWidget(title_label)

        title_layout.addStretch()

        # 批量操作按钮
        for name in self.controller.actions.names():
            btn = QPushButton(name)
            btn.setStyleSheet(BUTTON_STYLE.format(color="#ff4d4f", hover="#ff7875"))
            btn.setEnabled(False)
            btn.clicked.connect(lambda checked=False, action_name=name: self._run_action(action_name))
            title_layout.addWidget(btn)
            self._action_buttons[name] = btn

        # 添加规则按钮
        self.add_btn = QPushButton("添加规则")
        self.add_btn.setStyleSheet(BUTTON_STYLE.format(color="#1890ff", hover="#40a9ff"))
        self.add_btn.clicked.connect(self._add_rule)
        title_layout.addWidget(self.add_btn)

        # 刷新按钮
        self.refresh_btn = QPushButton("刷新")
        self.refresh_btn.setStyleSheet(BUTTON_STYLE.format(color="#52c41a", hover="#73d13d"))
        self.refresh_btn.clicked.connect(self.refresh_rules)
        title_layout.addWidget(self.refresh_btn)

        main_layout.addLayout(title_layout)

        # 规则列表表格
        self.rule_table = QTableWidget(0, 4)
        self.rule_table.setHorizontalHeaderLabels(["ID", "来源", "目标", "保留影像"])
        header = self.rule_table.horizontalHeader()
        header.setSectionResizeMode(QHeaderView.Stretch)
        header.setSectionResizeMode(0, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(3, QHeaderView.ResizeToContents)
        header.setSectionsClickable(True)
        header.sectionClicked.connect(self._on_header_clicked)
        self.rule_table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.rule_table.setSelectionMode(QAbstractItemView.ExtendedSelection)
        self.rule_table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.rule_table.itemSelectionChanged.connect(self._on_selection_changed)
        main_layout.addWidget(self.rule_table)

        # 分页栏
        pager_layout = QHBoxLayout()

        self.prev_btn = QPushButton("上一页")
        self.prev_btn.clicked.connect(self._previous_page)
        pager_layout.addWidget(self.prev_btn)

        self.page_label = QLabel("")
        pager_layout.addWidget(self.page_label)

        self.next_btn = QPushButton("下一页")
        self.next_btn.clicked.connect(self._next_page)
        pager_layout.addWidget(self.next_btn)

        pager_layout.addStretch()

        pager_layout.addWidget(QLabel("每页:"))
        self.page_size_spin = QSpinBox()
        self.page_size_spin.setRange(1, 500)
        self.page_size_spin.setValue(self.controller.state.cursor.count)
        self.page_size_spin.editingFinished.connect(self._on_page_size_changed)
        pager_layout.addWidget(self.page_size_spin)

        main_layout.addLayout(pager_layout)

        # 状态标签
        self.status_label = QLabel("共 0 个规则")
        self.status_label.setStyleSheet("color: #666666;")
        main_layout.addWidget(self.status_label)

        self._update_controls(self.controller.state)

    # 状态渲染

    def _on_state_changed(self, state: ListScreenState):
        if state.page is not self._rendered_page:
            self._render_page(state.page)
        elif self.controller.selection.is_empty and self.rule_table.selectionModel().hasSelection():
            self._rendering = True
            try:
                self.rule_table.clearSelection()
            finally:
                self._rendering = False
        self._update_controls(state)

    def _render_page(self, page: Optional[Page]):
        """把一页规则写入表格"""
        self._rendering = True
        try:
            self.rule_table.clearSelection()
            self.rule_table.setRowCount(0)
            for rule in (page.items if page else []):
                self._add_rule_to_table(rule)
            self._rendered_page = page
        finally:
            self._rendering = False

    def _add_rule_to_table(self, rule):
        row = self.rule_table.rowCount()
        self.rule_table.insertRow(row)

        id_item = QTableWidgetItem(str(rule.id))
        id_item.setData(Qt.UserRole, rule.id)
        self.rule_table.setItem(row, 0, id_item)

        self.rule_table.setItem(row, 1, QTableWidgetItem(rule.source.display_name()))
        self.rule_table.setItem(row, 2, QTableWidgetItem(rule.destination.display_name()))

        keep_item = QTableWidgetItem("是" if rule.keep_images else "否")
        if not rule.keep_images:
            keep_item.setForeground(QColor("#fa8c16"))
            keep_item.setToolTip("转发后删除原始影像")
        self.rule_table.setItem(row, 3, keep_item)

    def _update_controls(self, state: ListScreenState):
        loading = state.load_state == LoadState.LOADING
        selection = self.controller.selection.selection

        for name, btn in self._action_buttons.items():
            btn.setEnabled(not loading and self.controller.actions.get(name).is_eligible(selection))

        page = state.page
        self.prev_btn.setEnabled(not loading and state.cursor.start_index > 0)
        self.next_btn.setEnabled(not loading and page is not None and page.has_next)
        self.refresh_btn.setEnabled(not loading)

        if page is not None and page.items:
            self.page_label.setText(f"{page.start_index + 1}-{page.start_index + len(page.items)}")
        else:
            self.page_label.setText("")

        if loading:
            self.status_label.setText("正在加载...")
            self.status_label.setStyleSheet("color: #666666;")
        elif state.last_error is not None:
            self.status_label.setText(state.status_message)
            self.status_label.setStyleSheet("color: #ff4d4f;")
        else:
            self.status_label.setText(state.status_message)
            self.status_label.setStyleSheet("color: #666666;")

    def _selected_ids(self) -> List[int]:
        ids = []
        for index in self.rule_table.selectionModel().selectedRows():
            item = self.rule_table.item(index.row(), 0)
            if item is not None:
                ids.append(item.data(Qt.UserRole))
        return ids

    def _on_selection_changed(self):
        if self._rendering:
            return
        self.controller.set_selected(self._selected_ids())

    # 用户操作

    @asyncSlot()
    async def refresh_rules(self):
        """刷新当前页"""
        await self.controller.reload()

    @asyncSlot()
    async def _previous_page(self):
        await self.controller.previous_page()

    @asyncSlot()
    async def _next_page(self):
        await self.controller.next_page()

    @asyncSlot()
    async def _on_page_size_changed(self):
        count = self.page_size_spin.value()
        if count != self.controller.state.cursor.count:
            await self.controller.set_page_size(count)

    @asyncSlot(int)
    async def _on_header_clicked(self, column: int):
        prop = SORT_PROPERTIES.get(column)
        if prop is None:
            return
        await self.controller.sort_by(prop)
        direction = self.controller.state.cursor.order_by_direction
        order = Qt.AscendingOrder if direction == "asc" else Qt.DescendingOrder
        self.rule_table.horizontalHeader().setSortIndicator(column, order)
        self.rule_table.horizontalHeader().setSortIndicatorShown(True)

    @asyncSlot()
    async def _add_rule(self):
        """添加规则"""
        created = await self.controller.add_button_clicked()
        if created is None:
            error = self.controller.state.last_error
            if error is not None and self.controller.state.load_state != LoadState.LOAD_FAILED:
                QMessageBox.warning(self, "错误", self.controller.state.status_message)
            return

        logger.info(f"添加规则成功: {created.id}")
        self.rule_added.emit(created.id)
        QMessageBox.information(self, "成功", f"添加规则成功: {created.id}")

    @asyncSlot(str)
    async def _run_action(self, name: str):
        """对选中的规则执行批量操作"""
        outcome = await self.controller.run_action(name)
        if outcome is not None:
            if not outcome.cancelled and outcome.succeeded:
                self.rules_removed.emit(list(outcome.succeeded))
            return

        error = self.controller.state.last_error
        if isinstance(error, ActionPartialFailure):
            self.rules_removed.emit(list(error.succeeded))
            QMessageBox.warning(self, "部分失败", str(error))
        elif isinstance(error, ActionFailed):
            QMessageBox.warning(self, "错误", str(error))
