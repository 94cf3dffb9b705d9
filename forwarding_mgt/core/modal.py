"""
模态对话框流程

对话框以 ModalWorkflow.open() 打开，调用方挂起等待，直到操作员确认或取消：
    OPEN -> RESOLVED(payload) | CANCELLED

对话框种类是封闭集合 (ModalKind)，每种对应一个类型化的配置。
对话框的交互逻辑由 DialogController 实现，界面渲染由 ModalPresenter 实现。
同一界面同时只允许一个对话框，重复打开会抛出 ModalBusy。
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union

from forwarding_mgt.core.exceptions import ModalBusy, ValidationFailed
from forwarding_mgt.utils.logging import get_logger

logger = get_logger(__name__)


class ModalKind(str, Enum):
    """对话框种类"""
    CONFIRM_DELETE = "confirm_delete"
    CREATE_RULE = "create_rule"


class ModalState(str, Enum):
    """对话框状态"""
    OPEN = "open"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ModalConfig:
    """对话框配置基类"""
    kind: ClassVar[ModalKind]
    view: str = ""
    initial_data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConfirmDeleteConfig(ModalConfig):
    """删除确认对话框配置"""
    kind: ClassVar[ModalKind] = ModalKind.CONFIRM_DELETE
    view: str = "confirm_delete"
    count: int = 0
    entity_label_plural: str = ""

    @property
    def message(self) -> str:
        return f"确定要删除 {self.count} 个{self.entity_label_plural}吗？"


@dataclass(frozen=True)
class CreateRuleConfig(ModalConfig):
    """新增转发规则对话框配置"""
    kind: ClassVar[ModalKind] = ModalKind.CREATE_RULE
    view: str = "add_forwarding_rule"
    entity_label: str = "转发规则"
    initial_data: Dict[str, Any] = field(default_factory=lambda: {"keep_images": True})


@dataclass(frozen=True)
class Resolved:
    """操作员确认，携带结果"""
    payload: Any
    cancelled: ClassVar[bool] = False


@dataclass(frozen=True)
class Cancelled:
    """操作员取消，不是错误"""
    payload: ClassVar[Any] = None
    cancelled: ClassVar[bool] = True


ModalResult = Union[Resolved, Cancelled]


class DialogController:
    """对话框交互逻辑"""

    async def setup(self, session: "ModalSession"):
        """对话框显示后加载辅助数据，异常会显示在对话框内"""

    def can_confirm(self) -> bool:
        return True

    def build_result(self) -> Any:
        """
        生成确认结果

        Raises:
            ValidationFailed: 输入不完整
        """
        return True


class ConfirmDeleteController(DialogController):
    """删除确认，结果为 True"""


class ModalPresenter(ABC):
    """对话框界面"""

    @abstractmethod
    def show(self, session: "ModalSession"):
        """显示对话框"""

    @abstractmethod
    def close(self, session: "ModalSession"):
        """关闭对话框，每个退出路径都会调用"""

    @abstractmethod
    def show_error(self, session: "ModalSession", message: str):
        """在对话框内显示错误"""

    def refresh(self, session: "ModalSession"):
        """对话框数据变化后重新渲染"""


class ModalSession:
    """一次打开的对话框"""

    def __init__(self, config: ModalConfig, controller: DialogController,
                 presenter: ModalPresenter, future: asyncio.Future):
        self.config = config
        self.controller = controller
        self.state = ModalState.OPEN
        self.error: Optional[str] = None
        self._presenter = presenter
        self._future = future

    @property
    def kind(self) -> ModalKind:
        return self.config.kind

    @property
    def view(self) -> str:
        return self.config.view

    @property
    def is_open(self) -> bool:
        return self.state == ModalState.OPEN

    def can_confirm(self) -> bool:
        return self.is_open and self.controller.can_confirm()

    def confirm(self) -> bool:
        """
        确认对话框

        Returns:
            bool: 是否已关闭。校验失败时对话框保持打开并显示错误
        """
        if not self.is_open:
            logger.warning(f"对话框已关闭，忽略确认: {self.view}")
            return False

        try:
            payload = self.controller.build_result()
        except ValidationFailed as e:
            logger.info(f"对话框校验失败: {self.view}: {e}")
            self.report_error(str(e))
            return False

        self.error = None
        self._finish(ModalState.RESOLVED, Resolved(payload))
        return True

    def cancel(self):
        """取消对话框"""
        if self.is_open:
            self._finish(ModalState.CANCELLED, Cancelled())

    def report_error(self, message: str):
        self.error = message
        self._presenter.show_error(self, message)

    def notify_changed(self):
        if self.is_open:
            self._presenter.refresh(self)

    def _finish(self, state: ModalState, result: ModalResult):
        self.state = state
        if not self._future.done():
            self._future.set_result(result)

    async def wait(self) -> ModalResult:
        return await self._future


class ModalWorkflow:
    """同一界面上的对话框调度"""

    def __init__(self, presenter: ModalPresenter):
        self._presenter = presenter
        self._active: Optional[ModalSession] = None

    @property
    def is_open(self) -> bool:
        return self._active is not None

    async def open(self, config: ModalConfig, controller: Optional[DialogController] = None) -> ModalResult:
        """
        打开对话框并等待结果

        Args:
            config: 对话框配置
            controller: 交互逻辑，默认只做确认

        Returns:
            ModalResult: Resolved(payload) 或 Cancelled

        Raises:
            ModalBusy: 已有对话框打开
        """
        if self._active is not None:
            raise ModalBusy(self._active.view)

        loop = asyncio.get_running_loop()
        session = ModalSession(config, controller or DialogController(), self._presenter, loop.create_future())
        self._active = session
        setup_task = None
        logger.debug(f"打开对话框: {config.view}")

        try:
            self._presenter.show(session)
            setup_task = asyncio.ensure_future(self._run_setup(session))
            result = await session.wait()
            logger.debug(f"对话框结束: {config.view} -> {session.state.value}")
            return result
        finally:
            if setup_task is not None and not setup_task.done():
                setup_task.cancel()
            if session.is_open:
                # 等待方被取消，视为取消
                session.state = ModalState.CANCELLED
            self._active = None
            self._presenter.close(session)

    async def _run_setup(self, session: ModalSession):
        try:
            await session.controller.setup(session)
        except Exception as e:
            logger.error(f"对话框初始化失败: {session.view}: {e}")
            if session.is_open:
                session.report_error(f"加载数据失败: {e}")
        else:
            session.notify_changed()

    def dismiss(self):
        """关闭界面或离开页面时取消当前对话框"""
        if self._active is not None:
            logger.info(f"取消未完成的对话框: {self._active.view}")
            self._active.cancel()
