"""
Presentation serializers — controller / outcome → JSON-able dict。

只负责「输出格式化」，界面渲染是这些 dict 的纯函数。
不修改 controller 状态，也不做校验之外的任何计算。
"""

from .exceptions import BaseAppException
from .submission import SubmissionFailure

# 这几类失败用户改一下最后一步再提交即可
_RETRY_KINDS = {'network', 'reference', 'duplicate', 'validation'}


def serialize_field(descriptor, draft, is_frozen=False):
    """Serialize one field descriptor with its current value."""
    body = {
        'name': descriptor.name,
        'type': descriptor.type.value,
        'label': descriptor.label,
        'value': draft.get(descriptor.name),
        'read_only': is_frozen,
    }
    if descriptor.choices:
        body['choices'] = list(descriptor.choices)
    if descriptor.options_source:
        body['options_source'] = descriptor.options_source
    return body


def serialize_wizard_state(controller):
    """Serialize the whole wizard for one render pass."""
    draft = controller.draft_snapshot
    step_index = controller.current_step_index
    errors = controller.field_errors(step_index)

    response = {
        'form': controller.schema.name,
        'state': controller.state.value,
        'is_edit_mode': controller.is_edit_mode,
        'entity_id': controller.entity_id,
        'current_step': step_index,
        'total_steps': controller.total_steps,
        'step_titles': controller.step_titles,
        'progress': controller.progress,
        'service_type': controller.variant.key if controller.variant else None,
        'fields': [
            serialize_field(d, draft, controller.schema.is_frozen(d.name, controller.is_edit_mode))
            for d in controller.visible_fields(step_index)
        ],
        'errors': errors,
        'can_advance': not errors,
        'is_last_step': controller.is_last_step,
    }

    if controller.last_failure is not None:
        response['last_failure'] = serialize_outcome(controller.last_failure)

    return response


def serialize_outcome(outcome):
    """Serialize a submission outcome (None while nothing was submitted)."""
    if outcome is None:
        return None

    if isinstance(outcome, SubmissionFailure):
        return {
            'success': False,
            'error': {
                'type': 'remote',
                'kind': outcome.error_kind,
                'code': outcome.code,
                'message': outcome.message,
                'detail': outcome.detail,
                'retry_allowed': outcome.retry_allowed and outcome.error_kind in _RETRY_KINDS,
            },
        }

    return {
        'success': True,
        'remote_id': outcome.remote_id,
    }


def serialize_exception(exc: BaseAppException):
    """统一错误格式：{type, code, message, detail}，detail 为 None 时省略。"""
    body = {
        'type': exc.type,
        'code': exc.code,
        'message': exc.message,
    }
    if exc.detail is not None:
        body['detail'] = exc.detail
    return body
