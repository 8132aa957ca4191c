"""
BaseFormSchema — 所有 wizard 表单的抽象基类。

每个新表单只需：
1. 继承 BaseFormSchema
2. 声明 name / steps / frozen_fields / notifications / resource
3. 在 factory.py 的 _build_registry() 注册一行

Validator / Controller / Orchestrator 只通过这里的方法读取结构，
不需要知道具体是订单还是 specify 表单。
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..exceptions import ValidationError
from .types import FieldDescriptor, NotificationRule, StepDefinition
from .variants import ServiceVariant, VARIANT_FIELD, all_variants


class BaseFormSchema(ABC):
    """
    纯数据 + 纯函数，没有 I/O，也没有可变状态。

    resource / id_key 描述远端实体：POST {resource}，响应里用 id_key 取新 id。
    title_field 用于通知内容和日志。
    """

    name: str = ""
    resource: str = ""
    id_key: str = ""
    title_field: str = ""
    variant_field: str = VARIANT_FIELD
    frozen_fields: frozenset[str] = frozenset()
    notifications: tuple[NotificationRule, ...] = ()

    def __init__(self):
        self._steps = tuple(self.build_steps())
        indexes = [s.index for s in self._steps]
        if indexes != list(range(1, len(indexes) + 1)):
            raise ValueError(f"{type(self).__name__}: step indexes must be 1..N, got {indexes}")
        self._descriptors: dict[str, FieldDescriptor] = {}
        for step in self._steps:
            for descriptor in step.fields:
                self._descriptors[descriptor.name] = descriptor
        for variant in all_variants():
            for descriptor in variant.fields:
                self._descriptors[descriptor.name] = descriptor

    # ── 必须实现 ───────────────────────────────────────────────────────────

    @abstractmethod
    def build_steps(self) -> list[StepDefinition]:
        """返回按顺序排列的步骤定义（index 从 1 开始连续）。"""

    # ── 结构查询 ───────────────────────────────────────────────────────────

    @property
    def steps(self) -> tuple[StepDefinition, ...]:
        return self._steps

    @property
    def total_steps(self) -> int:
        return len(self._steps)

    @property
    def step_titles(self) -> list[str]:
        return [s.title for s in self._steps]

    def step(self, step_index: int) -> StepDefinition:
        if not isinstance(step_index, int) or not 1 <= step_index <= len(self._steps):
            raise ValidationError(
                message=f"Unknown step {step_index!r} for form {self.name!r}.",
                code="UNKNOWN_STEP",
                detail={"total_steps": len(self._steps)},
            )
        return self._steps[step_index - 1]

    def descriptor(self, name: str) -> Optional[FieldDescriptor]:
        return self._descriptors.get(name)

    def fields_for_step(self, step_index: int,
                        variant: Optional[ServiceVariant] = None) -> list[FieldDescriptor]:
        """步骤自己的字段；承载 variant 的步骤再追加所选 variant 的字段。"""
        step = self.step(step_index)
        fields = list(step.fields)
        if step.variant_fields and variant is not None:
            fields.extend(variant.fields)
        return fields

    def required_fields(self, step_index: int, variant: Optional[ServiceVariant] = None,
                        is_edit_mode: bool = False,
                        draft: Optional[dict[str, Any]] = None) -> set[str]:
        """
        该步骤前进前必须有效的字段集合。

        - 步骤自己的 required()（可跨步骤引用字段）
        - 承载 variant 的步骤：并上 variant.required_fields()
        - 编辑模式：去掉 frozen_fields（已固定的字段不要求重新输入）
        """
        step = self.step(step_index)
        required = set(step.required(variant, is_edit_mode, dict(draft or {})))
        if step.variant_fields and variant is not None:
            required |= variant.required_fields(is_edit_mode)
        if is_edit_mode:
            required -= self.frozen_fields
        return required

    def owned_field_names(self, variant: Optional[ServiceVariant] = None) -> set[str]:
        """所有步骤拥有的字段 + 所选 variant 的字段。其他 variant 的字段不算。"""
        names: set[str] = set()
        for step in self._steps:
            names.update(step.field_names)
        if variant is not None:
            names |= variant.field_names
        return names

    def submittable_fields(self, variant: Optional[ServiceVariant] = None) -> list[FieldDescriptor]:
        """进入 payload 的字段：属于某个步骤（或所选 variant）且 submit=True。"""
        fields = []
        for step_index in range(1, len(self._steps) + 1):
            fields.extend(self.fields_for_step(step_index, variant))
        return [f for f in fields if f.submit]

    def is_frozen(self, name: str, is_edit_mode: bool) -> bool:
        return is_edit_mode and name in self.frozen_fields
