"""
主窗口模块

实现应用程序的主窗口，承载转发规则管理面板。
"""

from PySide6.QtCore import Signal
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QLabel, QMainWindow, QMessageBox, QStatusBar

from forwarding_mgt.config import AppConfig, get_version
from forwarding_mgt.core.api_client import ForwardingApiClient
from forwarding_mgt.core.forwarding import build_forwarding_rules_screen
from forwarding_mgt.ui.components.forwarding_rule_panel import ForwardingRulePanel
from forwarding_mgt.ui.modal_presenter import QtModalPresenter
from forwarding_mgt.utils.logging import logger


class MainWindow(QMainWindow):
    """
    主窗口类，包含应用程序的主UI界面
    """

    # 定义信号
    status_changed = Signal(str, int)  # 状态消息, 超时时间

    def __init__(self, config: AppConfig, parent=None):
        """初始化主窗口"""
        super().__init__(parent)

        self.config = config
        self.setWindowTitle(config.get("app.name", "转发规则管理工具"))
        self.resize(1000, 700)

        self.client = ForwardingApiClient(
            config.base_url,
            api_key=config.api_key,
            username=config.username,
            password=config.password,
            timeout=config.timeout
        )
        self.presenter = QtModalPresenter()
        self.controller = build_forwarding_rules_screen(self.client, self.presenter, config.page_size)

        self._init_ui()
        self.presenter.set_parent(self)

        logger.info("主窗口已初始化")

    def _init_ui(self):
        """初始化UI组件"""
        self.rule_panel = ForwardingRulePanel(self.controller, self)
        self.setCentralWidget(self.rule_panel)

        self._create_menu_bar()

        # 状态栏
        self.status_bar = QStatusBar(self)
        self.setStatusBar(self.status_bar)
        self.status_label = QLabel(f"服务地址: {self.config.base_url}")
        self.status_bar.addPermanentWidget(self.status_label)

        self.status_changed.connect(self._on_status_changed)
        self.rule_panel.rule_added.connect(
            lambda rule_id: self.status_changed.emit(f"已添加规则 {rule_id}", 5000))
        self.rule_panel.rules_removed.connect(
            lambda ids: self.status_changed.emit(f"已删除 {len(ids)} 个规则", 5000))

    def _create_menu_bar(self):
        """创建菜单栏"""
        file_menu = self.menuBar().addMenu("文件(&F)")

        refresh_action = QAction("刷新", self)
        refresh_action.triggered.connect(self.rule_panel.refresh_rules)
        file_menu.addAction(refresh_action)

        file_menu.addSeparator()

        exit_action = QAction("退出(&Q)", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        help_menu = self.menuBar().addMenu("帮助(&H)")
        about_action = QAction("关于", self)
        about_action.triggered.connect(self._show_about)
        help_menu.addAction(about_action)

    def _on_status_changed(self, message, timeout=0):
        self.status_bar.showMessage(message, timeout)

    def _show_about(self):
        QMessageBox.about(self, "关于", f"转发规则管理工具 v{get_version()}")

    def closeEvent(self, event):
        """关闭窗口时取消未完成的对话框"""
        logger.info("主窗口关闭")
        self.controller.dispose()
        event.accept()
