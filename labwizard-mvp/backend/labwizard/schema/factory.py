"""
工厂函数：根据表单名返回对应 FormSchema 实例。

新增表单只需：
  1. 在 forms.py 新建 XxxFormSchema(BaseFormSchema) 类
  2. 在此处 _build_registry() 加一行
  Validator / Controller / Orchestrator 都不需要修改。
"""

from ..exceptions import ValidationError
from .base import BaseFormSchema


# ── 注册表 ──────────────────────────────────────────────────────────────────
# key: 表单名（controller 构造时传入）
# value: FormSchema 类（未实例化）
def _build_registry() -> dict[str, type[BaseFormSchema]]:
    # 延迟导入，避免循环依赖
    from .forms import OrderFormSchema, SpecifyFormSchema

    return {
        "order":   OrderFormSchema,
        "specify": SpecifyFormSchema,
    }


def get_form_schema(name: str) -> BaseFormSchema:
    """
    根据表单名返回已实例化的 FormSchema。

    Args:
        name: 表单名，"order" 或 "specify"

    Raises:
        ValidationError: 未知的表单名
    """
    registry = _build_registry()
    schema_cls = registry.get(name)

    if schema_cls is None:
        raise ValidationError(
            message=f"Unknown form: {name!r}.",
            code="UNKNOWN_FORM",
            detail={"known_forms": list(registry.keys())},
        )

    return schema_cls()
