"""
StepValidator — 判断当前步骤能否前进。

只检查该步骤的必填字段（包括跨步骤引用的字段）：
  空值          → "required"
  类型 / 规则不通过 → predicate 返回的原因码
选填字段不检查；后退永远不需要校验；旧 variant 的字段不裁剪（留给提交阶段）。
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .schema.base import BaseFormSchema
from .schema.types import is_empty
from .schema.variants import ServiceVariant

REQUIRED = "required"


@dataclass
class ValidationResult:
    step_index: int
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def can_advance(self) -> bool:
        return not self.errors


class StepValidator:

    def __init__(self, schema: BaseFormSchema):
        self.schema = schema

    def validate(self, step_index: int, draft: Mapping[str, Any],
                 variant: Optional[ServiceVariant] = None,
                 is_edit_mode: bool = False) -> ValidationResult:
        result = ValidationResult(step_index=step_index)
        required = self.schema.required_fields(step_index, variant, is_edit_mode, dict(draft))

        for name in sorted(required):
            value = draft.get(name)
            if is_empty(value):
                result.errors[name] = REQUIRED
                continue
            descriptor = self.schema.descriptor(name)
            if descriptor is None:
                continue
            reason = descriptor.check(value)
            if reason is not None:
                result.errors[name] = reason

        return result
