"""
批量操作

ActionRegistry 保存 "操作名称 -> 操作" 的有序映射，界面据此渲染按钮并分发到当前选择。
make_bulk_action() 生成批量删除操作：确认 -> 逐个删除 -> 清空选择并重新加载当前页。
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from forwarding_mgt.core.api_client import ForwardingApiClient
from forwarding_mgt.core.exceptions import ActionFailed, ActionPartialFailure
from forwarding_mgt.core.modal import ConfirmDeleteConfig, ConfirmDeleteController, ModalWorkflow
from forwarding_mgt.core.selection import Selection
from forwarding_mgt.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ActionOutcome:
    """批量操作结果"""
    name: str
    succeeded: List[Any] = field(default_factory=list)
    failed: Dict[Any, str] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)


@dataclass(frozen=True)
class ActionDescriptor:
    """界面上的一个批量操作"""
    name: str
    action: Callable[[Selection], Awaitable[ActionOutcome]]

    def is_eligible(self, selection: Selection) -> bool:
        return len(selection) > 0

    async def __call__(self, selection: Selection) -> ActionOutcome:
        return await self.action(selection)


class ReloadTarget(Protocol):
    """批量操作完成后需要刷新的列表"""

    def clear_selection(self): ...

    async def reload(self): ...


class BulkDeleteAction:
    """确认后删除选中的全部实体"""

    def __init__(self, name: str, endpoint_path: str, entity_label_plural: str,
                 client: ForwardingApiClient, modal: ModalWorkflow,
                 target: Optional[ReloadTarget] = None):
        self.name = name
        self.endpoint_path = endpoint_path
        self.entity_label_plural = entity_label_plural
        self._client = client
        self._modal = modal
        self._target = target

    def bind(self, target: ReloadTarget):
        self._target = target

    async def __call__(self, selection: Selection) -> ActionOutcome:
        """
        执行批量删除

        Returns:
            ActionOutcome: 全部成功或取消时的结果

        Raises:
            ActionPartialFailure: 部分删除失败
            ActionFailed: 全部删除失败
        """
        ids = sorted(selection)
        if not ids:
            return ActionOutcome(self.name, cancelled=True)

        config = ConfirmDeleteConfig(count=len(ids), entity_label_plural=self.entity_label_plural)
        result = await self._modal.open(config, ConfirmDeleteController())
        if result.cancelled:
            logger.info(f"{self.name}已取消: {ids}")
            return ActionOutcome(self.name, cancelled=True)

        outcome = ActionOutcome(self.name)
        try:
            results = await asyncio.gather(
                *(self._client.delete_entity(self.endpoint_path, entity_id) for entity_id in ids),
                return_exceptions=True
            )
            for entity_id, item in zip(ids, results):
                if isinstance(item, Exception):
                    logger.error(f"{self.name}失败: {self.endpoint_path}{entity_id}: {item}")
                    outcome.failed[entity_id] = str(item)
                else:
                    outcome.succeeded.append(entity_id)
        finally:
            # 无论成败都以服务端最新状态为准
            if self._target is not None:
                self._target.clear_selection()
                await self._target.reload()

        logger.info(f"{self.name}{self.entity_label_plural}: 成功 {len(outcome.succeeded)}，失败 {len(outcome.failed)}")
        if outcome.failed and outcome.succeeded:
            raise ActionPartialFailure(self.name, outcome.failed, outcome.succeeded)
        if outcome.failed:
            raise ActionFailed(self.name, outcome.failed)
        return outcome


class ActionRegistry:
    """批量操作注册表"""

    def __init__(self, client: ForwardingApiClient, modal: ModalWorkflow):
        self._client = client
        self._modal = modal
        self._actions: Dict[str, ActionDescriptor] = {}
        self._target: Optional[ReloadTarget] = None

    def make_bulk_action(self, endpoint_path: str, entity_label_plural: str,
                         name: str = "删除") -> ActionDescriptor:
        """
        生成批量删除操作

        Args:
            endpoint_path: 实体接口路径，如 /api/forwarding/rules/
            entity_label_plural: 确认提示中的实体名称
            name: 按钮上显示的操作名称
        """
        action = BulkDeleteAction(name, endpoint_path, entity_label_plural, self._client, self._modal)
        return ActionDescriptor(name, action)

    def register(self, descriptor: ActionDescriptor) -> ActionDescriptor:
        if descriptor.name in self._actions:
            raise ValueError(f"操作已存在: {descriptor.name}")
        self._actions[descriptor.name] = descriptor
        if self._target is not None and isinstance(descriptor.action, BulkDeleteAction):
            descriptor.action.bind(self._target)
        return descriptor

    def bind(self, target: ReloadTarget):
        """把需要刷新的列表绑定到所有批量删除操作，之后注册的操作也会绑定"""
        self._target = target
        for descriptor in self._actions.values():
            if isinstance(descriptor.action, BulkDeleteAction):
                descriptor.action.bind(target)

    def get(self, name: str) -> ActionDescriptor:
        return self._actions[name]

    def names(self) -> List[str]:
        return list(self._actions)

    def eligible_actions(self, selection: Selection) -> List[ActionDescriptor]:
        return [d for d in self._actions.values() if d.is_eligible(selection)]

    async def dispatch(self, name: str, selection: Selection) -> Optional[ActionOutcome]:
        """
        对当前选择执行操作

        Raises:
            KeyError: 未注册的操作
        """
        descriptor = self._actions[name]
        if not descriptor.is_eligible(selection):
            logger.debug(f"操作不可用，未选择任何条目: {name}")
            return None
        return await descriptor(selection)
