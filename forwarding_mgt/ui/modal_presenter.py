"""
Qt对话框展示

把 ModalWorkflow 的对话框会话映射到具体的 QDialog。
对话框以窗口模态方式打开，不阻塞事件循环。
"""

from typing import Dict, Optional

from PySide6.QtWidgets import QWidget

from forwarding_mgt.core.modal import ModalKind, ModalPresenter, ModalSession
from forwarding_mgt.ui.components.dialogs import AddForwardingRuleDialog, ConfirmDeleteDialog
from forwarding_mgt.utils.logging import get_logger

logger = get_logger(__name__)

DIALOG_CLASSES = {
    ModalKind.CONFIRM_DELETE: ConfirmDeleteDialog,
    ModalKind.CREATE_RULE: AddForwardingRuleDialog,
}


class QtModalPresenter(ModalPresenter):
    """用QDialog展示对话框"""

    def __init__(self, parent: Optional[QWidget] = None):
        self._parent = parent
        self._dialogs: Dict[int, object] = {}

    def set_parent(self, parent: QWidget):
        self._parent = parent

    def show(self, session: ModalSession):
        dialog_class = DIALOG_CLASSES[session.kind]
        dialog = dialog_class(session, self._parent)
        self._dialogs[id(session)] = dialog
        dialog.open()

    def close(self, session: ModalSession):
        dialog = self._dialogs.pop(id(session), None)
        if dialog is not None:
            dialog.close_from_session()
            dialog.deleteLater()

    def show_error(self, session: ModalSession, message: str):
        dialog = self._dialogs.get(id(session))
        if dialog is None:
            logger.warning(f"对话框不存在，无法显示错误: {message}")
            return
        dialog.show_error(message)

    def refresh(self, session: ModalSession):
        dialog = self._dialogs.get(id(session))
        if dialog is not None:
            dialog.refresh()
