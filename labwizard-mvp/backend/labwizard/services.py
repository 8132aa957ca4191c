"""
Wizard 组装：表单名 → 已接好远端实现的 WizardController。

界面层只需要：
    wizard = create_wizard("order")
    wizard = create_wizard("order", is_edit_mode=True, entity_id=order_id, initial=existing)
    body   = apply_edits(wizard, {"orderNote": "..."})   # 渲染用的 dict，出错时带 error
"""

import logging
from typing import Any, Callable, Mapping, Optional

from .controller import WizardController
from .exceptions import BaseAppException
from .remote import get_notifier, get_selection_source, get_submit_client
from .schema import get_form_schema
from .serializers import serialize_exception, serialize_wizard_state
from .submission import SideEffectReport, SubmissionOrchestrator

logger = logging.getLogger(__name__)


def create_wizard(form_name: str, *, is_edit_mode: bool = False,
                  entity_id: Optional[str] = None,
                  initial: Optional[Mapping[str, Any]] = None,
                  on_side_effect_failure: Optional[Callable[[SideEffectReport], None]] = None,
                  ) -> WizardController:
    """
    Raises:
        ValidationError: 未知表单名，或编辑模式缺少 entity_id
        ValueError:      LABWIZARD["NOTIFIER"] 配置错误
    """
    schema = get_form_schema(form_name)
    orchestrator = SubmissionOrchestrator(
        schema,
        client=get_submit_client(schema),
        notifier=get_notifier(),
        on_side_effect_failure=on_side_effect_failure,
    )
    logger.info("[Wizard] 创建 %s wizard (edit=%s, id=%s)", form_name, is_edit_mode, entity_id)
    return WizardController(
        schema,
        orchestrator,
        is_edit_mode=is_edit_mode,
        entity_id=entity_id,
        initial=initial,
        selection_source=get_selection_source(),
    )


def apply_edits(wizard: WizardController, partial: Mapping[str, Any]) -> dict[str, Any]:
    """
    界面提交一批字段修改，返回重新渲染用的 wizard 状态。

    冻结字段 / wizard 已锁定等业务异常不向上抛，放进 body['error']（统一错误格式），
    draft 保持不变。
    """
    try:
        wizard.patch_many(partial)
    except BaseAppException as exc:
        logger.info("[Wizard] %s 修改被拒绝 code=%s", wizard.schema.name, exc.code)
        body = serialize_wizard_state(wizard)
        body["error"] = serialize_exception(exc)
        return body
    return serialize_wizard_state(wizard)
