"""
转发规则服务API客户端模块

使用aiohttp访问转发规则、数据来源和转发目标的REST接口。
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from forwarding_mgt.core.models import DestinationRef, ForwardingRule, SourceRef
from forwarding_mgt.utils.logging import get_logger, log_api_request, log_api_response

logger = get_logger(__name__)

RULES_ENDPOINT = "/api/forwarding/rules"
SOURCES_ENDPOINT = "/api/sources"
DESTINATIONS_ENDPOINT = "/api/destinations"


class ApiError(Exception):
    """API错误"""
    def __init__(self, message: str, code: int = -1):
        self.message = message
        self.code = code
        super().__init__(f"API错误 [{code}]: {message}")


class ForwardingApiClient:
    """转发规则服务API客户端"""

    def __init__(self, base_url: str, api_key: Optional[str] = None,
                 username: Optional[str] = None, password: Optional[str] = None,
                 timeout: float = 10.0):
        """
        初始化API客户端

        Args:
            base_url: API基础URL
            api_key: API密钥，设置后通过 X-API-Key 请求头发送
            username: HTTP基本认证用户名
            password: HTTP基本认证密码
            timeout: 请求总超时时间（秒）
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._auth = aiohttp.BasicAuth(username, password or "") if username else None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    async def _request(self, method: str, endpoint: str, params: Dict = None, json: Any = None) -> Any:
        """
        发送HTTP请求

        Returns:
            Any: 解析后的JSON响应，空响应体返回None

        Raises:
            ApiError: 网络错误或非2xx状态码
        """
        url = f"{self.base_url}{endpoint}"
        log_api_request(method, url, params, json)
        started = time.monotonic()

        timeout = aiohttp.ClientTimeout(total=self.timeout, connect=min(3.0, self.timeout))
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, params=params, json=json,
                                           headers=self._headers(), auth=self._auth) as response:
                    log_api_response(method, url, response.status, time.monotonic() - started)
                    if response.status >= 400:
                        text = await response.text()
                        logger.error(f"{method}请求失败，状态码: {response.status}, 响应: {text}")
                        raise ApiError(text or f"HTTP错误: {response.status}", response.status)

                    body = await response.read()
                    if not body:
                        return None
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        logger.error(f"{method}响应不是有效JSON: {url}")
                        raise ApiError(f"响应不是有效JSON: {url}", response.status) from e
        except aiohttp.ClientError as e:
            logger.error(f"{method}请求网络错误: {url} {e}")
            raise ApiError(str(e)) from e
        except asyncio.TimeoutError as e:
            logger.error(f"{method}请求超时: {url}")
            raise ApiError(f"请求超时: {url}") from e

    async def _get(self, endpoint: str, params: Dict = None) -> Any:
        """发送GET请求"""
        return await self._request("GET", endpoint, params=params)

    async def _post(self, endpoint: str, json: Any = None) -> Any:
        """发送POST请求"""
        return await self._request("POST", endpoint, json=json)

    async def _delete(self, endpoint: str) -> Any:
        """发送DELETE请求"""
        return await self._request("DELETE", endpoint)

    async def get_page(self, endpoint: str, start_index: int, count: int,
                       order_by: Optional[str] = None, ascending: Optional[bool] = None) -> Any:
        """
        获取一页实体的原始数据

        Args:
            endpoint: 列表接口路径
            start_index: 起始位置
            count: 数量
            order_by: 排序字段
            ascending: 是否升序，仅在指定排序字段时发送
        """
        params = {"startindex": start_index, "count": count}
        if order_by:
            params["orderby"] = order_by
            if ascending is not None:
                params["orderascending"] = "true" if ascending else "false"
        return await self._get(endpoint, params)

    async def get_sources(self) -> List[SourceRef]:
        """获取数据来源列表"""
        data = await self._get(SOURCES_ENDPOINT)
        return self._parse_list(data, SourceRef, SOURCES_ENDPOINT)

    async def get_destinations(self) -> List[DestinationRef]:
        """获取转发目标列表"""
        data = await self._get(DESTINATIONS_ENDPOINT)
        return self._parse_list(data, DestinationRef, DESTINATIONS_ENDPOINT)

    async def create_rule(self, rule: ForwardingRule) -> ForwardingRule:
        """
        创建转发规则

        Args:
            rule: 规则草稿

        Returns:
            ForwardingRule: 服务端返回的规则，包含分配的ID
        """
        data = await self._post(RULES_ENDPOINT, json=rule.to_create_payload())
        try:
            created = ForwardingRule.model_validate(data)
        except ValidationError as e:
            raise ApiError(f"创建规则响应格式错误: {e}") from e
        logger.info(f"创建转发规则成功: {created.id}")
        return created

    async def delete_entity(self, endpoint_path: str, entity_id: int) -> None:
        """
        删除实体

        Args:
            endpoint_path: 实体接口路径，如 /api/forwarding/rules/
            entity_id: 实体ID
        """
        await self._delete(f"{endpoint_path.rstrip('/')}/{entity_id}")
        logger.debug(f"删除实体成功: {endpoint_path} {entity_id}")

    @staticmethod
    def _parse_list(data: Any, model, endpoint: str) -> list:
        if data is None:
            return []
        if not isinstance(data, list):
            raise ApiError(f"{endpoint} 响应不是数组")
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as e:
            raise ApiError(f"{endpoint} 响应格式错误: {e}") from e
