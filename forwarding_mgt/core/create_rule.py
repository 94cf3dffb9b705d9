"""
新增转发规则对话框逻辑

打开时并发加载来源和目标列表，操作员选择来源、目标和是否保留影像后确认。
来源和目标都选择之后才允许确认，否则抛出 ValidationFailed 且对话框保持打开。
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional

from forwarding_mgt.core.api_client import ForwardingApiClient
from forwarding_mgt.core.exceptions import ValidationFailed
from forwarding_mgt.core.modal import DialogController, ModalSession
from forwarding_mgt.core.models import DRAFT_ID, DestinationRef, ForwardingRule, SourceRef
from forwarding_mgt.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RuleDraft:
    """对话框内的规则草稿"""
    source: Optional[SourceRef] = None
    destination: Optional[DestinationRef] = None
    keep_images: bool = True


class CreateRuleWorkflow(DialogController):
    """新增转发规则"""

    def __init__(self, client: ForwardingApiClient, keep_images: bool = True):
        self._client = client
        self.sources: List[SourceRef] = []
        self.destinations: List[DestinationRef] = []
        self.draft = RuleDraft(keep_images=keep_images)
        self._session: Optional[ModalSession] = None

    async def setup(self, session: ModalSession):
        self._session = session
        keep_images = session.config.initial_data.get("keep_images")
        if keep_images is not None:
            self.draft.keep_images = bool(keep_images)

        self.sources, self.destinations = await asyncio.gather(
            self._client.get_sources(),
            self._client.get_destinations()
        )
        logger.debug(f"已加载 {len(self.sources)} 个来源, {len(self.destinations)} 个目标")

    def select_source(self, source: Optional[SourceRef]):
        self.draft.source = source
        self._changed()

    def select_destination(self, destination: Optional[DestinationRef]):
        self.draft.destination = destination
        self._changed()

    def set_keep_images(self, keep_images: bool):
        self.draft.keep_images = bool(keep_images)
        self._changed()

    def _changed(self):
        if self._session is not None:
            self._session.notify_changed()

    def missing_fields(self) -> List[str]:
        missing = []
        if self.draft.source is None:
            missing.append("来源")
        if self.draft.destination is None:
            missing.append("目标")
        return missing

    def can_confirm(self) -> bool:
        return not self.missing_fields()

    def build_result(self) -> ForwardingRule:
        missing = self.missing_fields()
        if missing:
            raise ValidationFailed(missing, f"请选择{'和'.join(missing)}")

        return ForwardingRule(
            id=DRAFT_ID,
            source=self.draft.source,
            destination=self.draft.destination,
            keep_images=self.draft.keep_images
        )
