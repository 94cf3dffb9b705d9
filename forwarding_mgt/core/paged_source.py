"""
分页数据源

按 (起始位置, 数量, 排序字段, 排序方向) 拉取一页实体。
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Type

from pydantic import BaseModel, ValidationError

from forwarding_mgt.core.api_client import ApiError, ForwardingApiClient
from forwarding_mgt.core.exceptions import FetchFailed
from forwarding_mgt.core.models import Page
from forwarding_mgt.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_DIRECTIONS = ("asc", "desc")


def validate_page_request(start_index: int, count: int, order_by_direction: Optional[str] = None):
    """
    校验分页参数

    Raises:
        ValueError: 参数不合法
    """
    if start_index < 0:
        raise ValueError(f"起始位置不能为负数: {start_index}")
    if count <= 0:
        raise ValueError(f"数量必须大于0: {count}")
    if order_by_direction is not None and order_by_direction not in ORDER_DIRECTIONS:
        raise ValueError(f"无效的排序方向: {order_by_direction}")


class PagedListSource(ABC):
    """分页数据源接口"""

    @abstractmethod
    async def load_page(self, start_index: int, count: int,
                        order_by_property: Optional[str] = None,
                        order_by_direction: Optional[str] = None) -> Page:
        """
        加载一页数据

        Args:
            start_index: 起始位置，>= 0
            count: 数量，> 0
            order_by_property: 排序字段，为空时使用服务端默认顺序
            order_by_direction: "asc" 或 "desc"

        Returns:
            Page: 分页结果

        Raises:
            FetchFailed: 网络或服务端错误
        """


class RestPagedListSource(PagedListSource):
    """通过REST列表接口分页加载实体"""

    def __init__(self, client: ForwardingApiClient, endpoint: str, item_model: Type[BaseModel]):
        self._client = client
        self._endpoint = endpoint
        self._item_model = item_model

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def load_page(self, start_index: int, count: int,
                        order_by_property: Optional[str] = None,
                        order_by_direction: Optional[str] = None) -> Page:
        validate_page_request(start_index, count, order_by_direction)

        ascending = None
        if order_by_property and order_by_direction:
            ascending = order_by_direction == "asc"

        try:
            data = await self._client.get_page(self._endpoint, start_index, count,
                                               order_by_property, ascending)
        except ApiError as e:
            logger.error(f"加载分页失败: {self._endpoint} start={start_index} count={count}: {e}")
            raise FetchFailed(start_index, count, e.message) from e

        return self._to_page(data, start_index, count)

    def _to_page(self, data: Any, start_index: int, count: int) -> Page:
        """把服务端响应整理成满足分页约束的结果"""
        if isinstance(data, dict):
            raw_items = data.get("items") or []
            total = data.get("totalCount")
            if total is not None:
                try:
                    total = int(total)
                except (TypeError, ValueError) as e:
                    raise FetchFailed(start_index, count, f"响应格式错误: totalCount={total!r}") from e
        elif isinstance(data, list) or data is None:
            raw_items = data or []
            total = None
        else:
            raise FetchFailed(start_index, count, "响应格式错误")

        if not isinstance(raw_items, list):
            raise FetchFailed(start_index, count, "响应格式错误: items 不是数组")

        try:
            items = [self._item_model.model_validate(item) for item in raw_items]
        except ValidationError as e:
            raise FetchFailed(start_index, count, f"响应格式错误: {e}") from e

        if len(items) > count:
            logger.warning(f"服务端返回 {len(items)} 条，超过请求的 {count} 条，已截断")
            items = items[:count]

        loaded_end = start_index + len(items)
        if total is None:
            # 裸数组响应没有总数，满页时假定还有下一页
            total = loaded_end + 1 if len(items) == count else loaded_end
        elif total < loaded_end:
            logger.warning(f"服务端总数 {total} 小于已加载范围 {loaded_end}，已修正")
            total = loaded_end

        return Page(items=items, total_count=total, start_index=start_index, count=count)
