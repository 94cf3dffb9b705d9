"""
实体列表控制器

组合分页数据源、选择状态、批量操作和对话框，驱动一个列表界面：
- 维护当前游标 (起始位置, 数量, 排序字段, 排序方向)，游标变化时加载新的一页
- 新的加载请求会使旧请求失效，迟到的旧响应直接丢弃
- 加载和操作失败转换为状态消息，不向上抛出，已显示的页面保持不变
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from forwarding_mgt.core.actions import ActionOutcome, ActionRegistry
from forwarding_mgt.core.exceptions import ActionFailed, FetchFailed, ModalBusy
from forwarding_mgt.core.modal import DialogController, ModalConfig, ModalWorkflow
from forwarding_mgt.core.models import Page
from forwarding_mgt.core.paged_source import PagedListSource
from forwarding_mgt.core.selection import SelectionTable
from forwarding_mgt.utils.logging import get_logger, log_exception

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20


class LoadState(str, Enum):
    """列表加载状态"""
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"


@dataclass(frozen=True)
class ListCursor:
    """分页游标"""
    start_index: int = 0
    count: int = DEFAULT_PAGE_SIZE
    order_by_property: Optional[str] = None
    order_by_direction: Optional[str] = None


@dataclass
class ListScreenState:
    """列表界面状态"""
    cursor: ListCursor = field(default_factory=ListCursor)
    load_state: LoadState = LoadState.IDLE
    page: Optional[Page] = None
    status_message: str = ""
    last_error: Optional[Exception] = None


AddWorkflowFactory = Callable[[], Tuple[ModalConfig, DialogController]]
PersistFunc = Callable[[Any], Awaitable[Any]]


class EntityListController:
    """实体列表控制器"""

    def __init__(self, source: PagedListSource, actions: ActionRegistry, modal: ModalWorkflow,
                 entity_label: str = "", add_workflow: Optional[AddWorkflowFactory] = None,
                 persist: Optional[PersistFunc] = None, page_size: int = DEFAULT_PAGE_SIZE):
        """
        Args:
            source: 分页数据源
            actions: 批量操作注册表
            modal: 对话框调度
            entity_label: 状态消息中的实体名称
            add_workflow: 生成新增对话框 (配置, 交互逻辑)
            persist: 保存新增对话框返回的草稿
            page_size: 每页数量
        """
        self._source = source
        self._actions = actions
        self._modal = modal
        self._entity_label = entity_label
        self._add_workflow = add_workflow
        self._persist = persist
        self._generation = 0
        self._listeners: List[Callable[[ListScreenState], None]] = []

        self.state = ListScreenState(cursor=ListCursor(count=page_size))
        self.selection = SelectionTable()

        self._actions.bind(self)

    @property
    def actions(self) -> ActionRegistry:
        return self._actions

    @property
    def modal(self) -> ModalWorkflow:
        return self._modal

    def add_listener(self, callback: Callable[[ListScreenState], None]):
        """状态变化时回调"""
        self._listeners.append(callback)

    def _notify(self):
        for callback in list(self._listeners):
            try:
                callback(self.state)
            except Exception as e:
                log_exception(e, "列表状态回调失败")

    def _set_status(self, message: str, error: Optional[Exception] = None):
        self.state.status_message = message
        self.state.last_error = error
        self._notify()

    async def load(self, cursor: ListCursor) -> bool:
        """
        按游标加载一页

        Returns:
            bool: 结果是否已应用到界面。被更新的请求取代或加载失败时返回False
        """
        self._generation += 1
        generation = self._generation
        self.state.cursor = cursor
        self.state.load_state = LoadState.LOADING
        self._notify()

        try:
            page = await self._source.load_page(cursor.start_index, cursor.count,
                                                cursor.order_by_property, cursor.order_by_direction)
        except (FetchFailed, ValueError) as e:
            if generation != self._generation:
                logger.debug(f"丢弃过期的加载失败: {e}")
                return False
            logger.error(f"加载{self._entity_label}列表失败: {e}")
            self.state.load_state = LoadState.LOAD_FAILED
            self._set_status(f"加载{self._entity_label}列表失败: {e}", e)
            return False

        if generation != self._generation:
            logger.debug(f"丢弃过期的分页结果: start={cursor.start_index} count={cursor.count}")
            return False

        self.state.page = page
        self.state.load_state = LoadState.LOADED
        self.selection.reset(page.ids())
        self._set_status(self._page_summary(page))
        return True

    def _page_summary(self, page: Page) -> str:
        if not page.items:
            return f"共 {page.total_count} 个{self._entity_label}"
        first = page.start_index + 1
        last = page.start_index + len(page.items)
        return f"第 {first}-{last} 个，共 {page.total_count} 个{self._entity_label}"

    async def reload(self) -> bool:
        """按当前游标重新加载"""
        return await self.load(self.state.cursor)

    async def next_page(self) -> bool:
        page = self.state.page
        if page is not None and not page.has_next:
            return False
        cursor = self.state.cursor
        return await self.load(replace(cursor, start_index=cursor.start_index + cursor.count))

    async def previous_page(self) -> bool:
        cursor = self.state.cursor
        if cursor.start_index == 0:
            return False
        return await self.load(replace(cursor, start_index=max(0, cursor.start_index - cursor.count)))

    async def set_page_size(self, count: int) -> bool:
        if count <= 0:
            raise ValueError(f"每页数量必须大于0: {count}")
        return await self.load(replace(self.state.cursor, start_index=0, count=count))

    async def sort_by(self, order_by_property: Optional[str], order_by_direction: Optional[str] = None) -> bool:
        """
        按字段排序并回到第一页

        未指定方向时，对同一字段重复排序会在升序和降序之间切换
        """
        cursor = self.state.cursor
        if order_by_direction is None and order_by_property is not None:
            if cursor.order_by_property == order_by_property and cursor.order_by_direction == "asc":
                order_by_direction = "desc"
            else:
                order_by_direction = "asc"
        if order_by_property is None:
            order_by_direction = None
        return await self.load(replace(cursor, start_index=0,
                                       order_by_property=order_by_property,
                                       order_by_direction=order_by_direction))

    # 选择

    def clear_selection(self):
        self.selection.clear()
        self._notify()

    def set_selected(self, entity_ids):
        self.selection.set_selected(entity_ids)
        self._notify()

    def eligible_action_names(self) -> List[str]:
        return [d.name for d in self._actions.eligible_actions(self.selection.selection)]

    # 操作

    async def run_action(self, name: str) -> Optional[ActionOutcome]:
        """
        对当前选择执行批量操作

        Returns:
            Optional[ActionOutcome]: 操作结果，失败或不可用时返回None
        """
        try:
            outcome = await self._actions.dispatch(name, self.selection.selection)
        except ModalBusy as e:
            logger.warning(f"无法执行{name}: {e}")
            self._set_status("请先关闭当前对话框", e)
            return None
        except ActionFailed as e:
            logger.error(f"{name}{self._entity_label}失败: {e}")
            self._set_status(str(e), e)
            return None

        if outcome is None:
            self._set_status(f"请先选择{self._entity_label}")
        elif outcome.cancelled:
            self._set_status(f"已取消{name}")
        else:
            self._set_status(f"已{name} {len(outcome.succeeded)} 个{self._entity_label}")
        return outcome

    async def add_button_clicked(self) -> Optional[Any]:
        """
        打开新增对话框，确认后保存并刷新列表

        Returns:
            Optional[Any]: 新建的实体，取消或失败时返回None
        """
        if self._add_workflow is None or self._persist is None:
            raise RuntimeError("未配置新增对话框")

        config, controller = self._add_workflow()
        try:
            result = await self._modal.open(config, controller)
        except ModalBusy as e:
            logger.warning(f"无法打开新增对话框: {e}")
            self._set_status("请先关闭当前对话框", e)
            return None

        if result.cancelled:
            logger.debug(f"已取消新增{self._entity_label}")
            self._set_status(f"已取消添加{self._entity_label}")
            return None

        try:
            created = await self._persist(result.payload)
        except Exception as e:
            log_exception(e, f"保存{self._entity_label}失败")
            self._set_status(f"保存{self._entity_label}失败: {e}", e)
            return None

        logger.info(f"新增{self._entity_label}成功: {getattr(created, 'id', created)}")
        await self.reload()
        return created

    def dispose(self):
        """离开界面，取消未完成的对话框并忽略未完成的加载"""
        self._generation += 1
        self._modal.dismiss()
        self._listeners.clear()
