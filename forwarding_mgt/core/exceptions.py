"""
异常定义

列表加载、表单校验、批量操作和对话框冲突的错误类型。
用户主动取消不属于错误，由 ModalResult 表示。
"""

from typing import Any, Dict, Iterable, List, Optional


class ForwardingMgtError(Exception):
    """所有业务错误的基类"""


class FetchFailed(ForwardingMgtError):
    """分页加载失败"""

    def __init__(self, start_index: int, count: int, reason: str = ""):
        self.start_index = start_index
        self.count = count
        self.reason = reason
        message = f"加载第 {start_index} 到 {start_index + count - 1} 条失败"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ValidationFailed(ForwardingMgtError):
    """表单校验失败，对话框保持打开"""

    def __init__(self, missing: Iterable[str], message: Optional[str] = None):
        self.missing: List[str] = list(missing)
        super().__init__(message or f"请填写: {', '.join(self.missing)}")


class ActionFailed(ForwardingMgtError):
    """批量操作全部失败"""

    def __init__(self, action_name: str, failed: Dict[Any, str], succeeded: Iterable[Any] = ()):
        self.action_name = action_name
        self.failed = dict(failed)
        self.succeeded = list(succeeded)
        super().__init__(self._describe())

    def _describe(self) -> str:
        return f"{self.action_name}失败: {len(self.failed)} 项未完成"


class ActionPartialFailure(ActionFailed):
    """批量操作部分成功、部分失败"""

    def _describe(self) -> str:
        return (f"{self.action_name}部分失败: 成功 {len(self.succeeded)} 项，"
                f"失败 {len(self.failed)} 项 (ID: {', '.join(str(i) for i in self.failed)})")


class ModalBusy(ForwardingMgtError):
    """已有对话框打开时再次打开对话框"""

    def __init__(self, active_view: str):
        self.active_view = active_view
        super().__init__(f"已有对话框打开: {active_view}")
