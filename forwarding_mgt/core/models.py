"""
数据模型

定义转发规则、来源/目标引用和分页结果的数据模型，字段名与服务端JSON保持一致。
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

DRAFT_ID = -1

T = TypeVar("T")


class SourceRef(BaseModel):
    """数据来源引用"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    source_type: str = Field(..., alias="sourceType", description="来源类型")
    source_name: str = Field(..., alias="sourceName", description="来源名称")
    source_id: int = Field(..., alias="sourceId", description="来源ID")

    def display_name(self) -> str:
        return f"{self.source_name} ({self.source_type})"


class DestinationRef(BaseModel):
    """转发目标引用"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    destination_type: str = Field(..., alias="destinationType", description="目标类型")
    destination_name: str = Field(..., alias="destinationName", description="目标名称")
    destination_id: int = Field(..., alias="destinationId", description="目标ID")

    def display_name(self) -> str:
        return f"{self.destination_name} ({self.destination_type})"


class ForwardingRule(BaseModel):
    """转发规则，id 为 -1 表示尚未保存的草稿"""
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(DRAFT_ID, ge=DRAFT_ID, description="规则ID")
    source: SourceRef = Field(..., description="数据来源")
    destination: DestinationRef = Field(..., description="转发目标")
    keep_images: bool = Field(True, alias="keepImages", description="转发后是否保留原始影像")

    @property
    def is_draft(self) -> bool:
        return self.id == DRAFT_ID

    def to_create_payload(self) -> dict:
        """新建请求体，不包含ID"""
        return self.model_dump(by_alias=True, exclude={"id"})


class Page(BaseModel, Generic[T]):
    """
    分页结果

    保证 len(items) <= count 且 start_index + len(items) <= total_count
    """
    model_config = ConfigDict(populate_by_name=True)

    items: List[T] = Field(default_factory=list)
    total_count: int = Field(0, alias="totalCount", ge=0)
    start_index: int = Field(0, alias="startIndex", ge=0)
    count: int = Field(..., gt=0)

    @model_validator(mode="after")
    def _check_bounds(self):
        if len(self.items) > self.count:
            raise ValueError(f"分页条目数 {len(self.items)} 超过请求数量 {self.count}")
        if self.start_index + len(self.items) > self.total_count:
            raise ValueError(f"总数 {self.total_count} 小于已加载范围 {self.start_index + len(self.items)}")
        return self

    @property
    def has_previous(self) -> bool:
        return self.start_index > 0

    @property
    def has_next(self) -> bool:
        return self.start_index + len(self.items) < self.total_count

    def ids(self) -> List[int]:
        return [item.id for item in self.items if getattr(item, "id", None) is not None]

    def find(self, entity_id: int) -> Optional[T]:
        for item in self.items:
            if getattr(item, "id", None) == entity_id:
                return item
        return None
