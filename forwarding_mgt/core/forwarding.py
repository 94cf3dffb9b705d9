"""
转发规则管理界面的组装

把通用的列表控制器配置成转发规则列表：
- 数据来自 /api/forwarding/rules
- 提供 "删除" 批量操作
- "添加规则" 打开新增转发规则对话框，确认后 POST 保存
"""

from typing import Tuple

from forwarding_mgt.core.actions import ActionRegistry
from forwarding_mgt.core.api_client import RULES_ENDPOINT, ForwardingApiClient
from forwarding_mgt.core.create_rule import CreateRuleWorkflow
from forwarding_mgt.core.list_controller import DEFAULT_PAGE_SIZE, EntityListController
from forwarding_mgt.core.modal import CreateRuleConfig, ModalPresenter, ModalWorkflow
from forwarding_mgt.core.models import ForwardingRule
from forwarding_mgt.core.paged_source import RestPagedListSource

ENTITY_LABEL = "转发规则"


def build_forwarding_rules_screen(client: ForwardingApiClient, presenter: ModalPresenter,
                                  page_size: int = DEFAULT_PAGE_SIZE) -> EntityListController:
    """
    创建转发规则列表控制器

    Args:
        client: API客户端
        presenter: 对话框界面
        page_size: 每页数量

    Returns:
        EntityListController: 尚未加载数据的控制器，调用 reload() 加载第一页
    """
    modal = ModalWorkflow(presenter)

    actions = ActionRegistry(client, modal)
    actions.register(actions.make_bulk_action(RULES_ENDPOINT + "/", ENTITY_LABEL))

    def add_workflow() -> Tuple[CreateRuleConfig, CreateRuleWorkflow]:
        return CreateRuleConfig(entity_label=ENTITY_LABEL), CreateRuleWorkflow(client)

    async def persist(draft: ForwardingRule) -> ForwardingRule:
        return await client.create_rule(draft)

    return EntityListController(
        source=RestPagedListSource(client, RULES_ENDPOINT, ForwardingRule),
        actions=actions,
        modal=modal,
        entity_label=ENTITY_LABEL,
        add_workflow=add_workflow,
        persist=persist,
        page_size=page_size
    )
