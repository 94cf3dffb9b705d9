"""
对话框组件

该模块包含删除确认和新增转发规则对话框。
"""

from forwarding_mgt.ui.components.dialogs.confirm_delete_dialog import ConfirmDeleteDialog
from forwarding_mgt.ui.components.dialogs.rule_dialog import AddForwardingRuleDialog

__all__ = [
    'AddForwardingRuleDialog',
    'ConfirmDeleteDialog'
]
