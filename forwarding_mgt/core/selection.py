"""
表格选择状态

记录当前页渲染出的实体ID和其中被选中的子集。
"""

from typing import FrozenSet, Iterable, List

from forwarding_mgt.utils.logging import get_logger

logger = get_logger(__name__)

Selection = FrozenSet[int]


class SelectionTable:
    """当前页的选择集合，始终是当前页ID的子集"""

    def __init__(self):
        self._page_ids: List[int] = []
        self._selected: set = set()

    def reset(self, page_ids: Iterable[int]):
        """
        切换到新的一页，清空选择

        Args:
            page_ids: 新页面中实体ID，按显示顺序
        """
        self._page_ids = list(page_ids)
        self._selected.clear()

    @property
    def page_ids(self) -> List[int]:
        return list(self._page_ids)

    @property
    def selection(self) -> Selection:
        return frozenset(self._selected)

    @property
    def is_empty(self) -> bool:
        return not self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, entity_id) -> bool:
        return entity_id in self._selected

    def select(self, entity_id: int) -> bool:
        """选中实体，不在当前页的ID会被忽略"""
        if entity_id not in self._page_ids:
            logger.warning(f"忽略不在当前页的选择: {entity_id}")
            return False
        self._selected.add(entity_id)
        return True

    def deselect(self, entity_id: int):
        self._selected.discard(entity_id)

    def toggle(self, entity_id: int) -> bool:
        """切换选中状态，返回切换后是否选中"""
        if entity_id in self._selected:
            self._selected.discard(entity_id)
            return False
        return self.select(entity_id)

    def set_selected(self, entity_ids: Iterable[int]):
        """用给定ID替换当前选择"""
        self._selected.clear()
        for entity_id in entity_ids:
            self.select(entity_id)

    def select_all(self):
        self._selected = set(self._page_ids)

    def clear(self):
        self._selected.clear()
