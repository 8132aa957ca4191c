"""
SubmissionOrchestrator — complete() 之后的全部工作。

流程：
  1. 裁剪：只保留某个步骤（或所选 variant）拥有、且 submit=True 的字段
  2. 转换：数字 → int/float，文本 trim，日期 → ISO；空的选填字段直接不发
  3. 远端调用恰好一次：create(payload) 或 update(entity_id, payload)
  4. 失败 → SubmissionFailure，不触发任何通知
  5. 成功 → 按 NotificationRule 派发通知（独立的 asyncio task，不阻塞返回）

通知失败只记录日志 + 回调，永远不会把成功改成失败。
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from .conf import wizard_setting
from .error_mapping import outcome_from_exception
from .exceptions import RemoteError, ValidationError
from .remote.base import BaseNotifier, BaseSubmitClient
from .schema.base import BaseFormSchema
from .schema.types import FieldDescriptor, FieldType, NotificationRule, is_empty, parse_date, parse_number
from .schema.variants import ServiceVariant

logger = logging.getLogger(__name__)


# ── Outcome ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SubmissionSuccess:
    remote_id: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class SubmissionFailure:
    error_kind: str   # reference / duplicate / network / authorization / validation / unknown
    message: str
    code: str = "REMOTE_ERROR"
    detail: Any = None
    retry_allowed: bool = True   # False：服务端状态未知，不能再次提交

    @property
    def ok(self) -> bool:
        return False


SubmissionOutcome = Union[SubmissionSuccess, SubmissionFailure]


@dataclass(frozen=True)
class SideEffectReport:
    channel: str
    target: str
    ok: bool
    error: Optional[str] = None


# channel → notifier 方法名
_CHANNEL_METHODS = {
    "email": "send_email",
    "zalo":  "send_message",
}


def coerce_value(descriptor: FieldDescriptor, value: Any) -> Any:
    """
    单个字段的提交格式。无法转换时抛 ValueError。

    表单输入大多是字符串，这里统一转成远端要求的类型。
    """
    if descriptor.type == FieldType.NUMBER:
        return parse_number(value, integer=descriptor.integer)
    if descriptor.type == FieldType.DATE:
        return parse_date(value)
    if descriptor.type == FieldType.BOOLEAN:
        return bool(value)
    if descriptor.type == FieldType.ENUM and descriptor.choices:
        choice = descriptor.canonical_choice(value)
        if choice is None:
            raise ValueError(f"not one of {descriptor.choices}: {value!r}")
        return choice
    if isinstance(value, str):
        return value.strip()
    return value


class SubmissionOrchestrator:

    def __init__(self, schema: BaseFormSchema, client: BaseSubmitClient,
                 notifier: Optional[BaseNotifier] = None,
                 on_side_effect_failure: Optional[Callable[[SideEffectReport], None]] = None,
                 notifications_enabled: Optional[bool] = None):
        self.schema = schema
        self.client = client
        self.notifier = notifier
        self.on_side_effect_failure = on_side_effect_failure
        if notifications_enabled is None:
            notifications_enabled = bool(wizard_setting("NOTIFICATIONS_ENABLED"))
        self.notifications_enabled = notifications_enabled
        self._pending: set[asyncio.Task] = set()
        self._reports: list[SideEffectReport] = []

    # ── Payload ────────────────────────────────────────────────────────────

    def build_payload(self, draft: Mapping[str, Any],
                      variant: Optional[ServiceVariant]) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for descriptor in self.schema.submittable_fields(variant):
            value = draft.get(descriptor.name)
            if is_empty(value):
                continue
            if descriptor.name == self.schema.variant_field and variant is not None:
                payload[descriptor.name] = variant.key
                continue
            try:
                payload[descriptor.name] = coerce_value(descriptor, value)
            except ValueError:
                # 选填字段格式不对：不发送，避免整单被远端拒绝
                logger.warning("[Submit] 字段 %s 的值 %r 无法转换，已忽略", descriptor.name, value)
        return payload

    # ── Submit ─────────────────────────────────────────────────────────────

    async def submit(self, draft: Mapping[str, Any], variant: Optional[ServiceVariant],
                     is_edit_mode: bool, entity_id: Optional[str] = None) -> SubmissionOutcome:
        """
        Raises:
            ValidationError: 编辑模式但没有 entity_id（调用方的编程错误）
        """
        if is_edit_mode and not entity_id:
            raise ValidationError(
                message=f"Editing a {self.schema.name!r} requires an entity id.",
                code="MISSING_ENTITY_ID",
            )

        payload = self.build_payload(draft, variant)
        logger.info("[Submit] %s %s，字段数=%d", self.schema.name,
                    "update" if is_edit_mode else "create", len(payload))

        try:
            if is_edit_mode:
                await self.client.update(entity_id, payload)
                remote_id = str(entity_id)
            else:
                remote_id = str(await self.client.create(payload))
        except RemoteError as exc:
            logger.warning("[Submit] %s 提交失败 kind=%s code=%s: %s",
                           self.schema.name, exc.kind, exc.code, exc.message)
            return outcome_from_exception(exc)

        logger.info("[Submit] %s 提交成功 id=%s", self.schema.name, remote_id)
        self._dispatch_side_effects(draft, remote_id)
        return SubmissionSuccess(remote_id=remote_id)

    # ── Side effects ───────────────────────────────────────────────────────

    def _dispatch_side_effects(self, draft: Mapping[str, Any], remote_id: str) -> None:
        if not self.notifications_enabled:
            logger.info("[Submit] 通知已全局关闭，跳过")
            return
        if self.notifier is None:
            return

        for rule in self.schema.notifications:
            if draft.get(rule.toggle) is not True:
                continue
            target = draft.get(rule.contact_field)
            if is_empty(target):
                logger.info("[Submit] %s 已勾选但 %s 为空，跳过", rule.toggle, rule.contact_field)
                continue
            payload = self._notification_payload(draft, remote_id)
            task = asyncio.create_task(self._run_side_effect(rule, str(target).strip(), payload))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    def _notification_payload(self, draft: Mapping[str, Any], remote_id: str) -> dict[str, Any]:
        return {
            "form": self.schema.name,
            "entityId": remote_id,
            "title": draft.get(self.schema.title_field),
            "patientName": draft.get("patientName"),
        }

    async def _run_side_effect(self, rule: NotificationRule, target: str,
                               payload: dict[str, Any]) -> SideEffectReport:
        send = getattr(self.notifier, _CHANNEL_METHODS[rule.channel])
        try:
            await send(target, payload)
        except Exception as exc:
            logger.warning("[Submit] %s 通知发送失败 target=%s: %s", rule.channel, target, exc)
            report = SideEffectReport(channel=rule.channel, target=target, ok=False, error=str(exc))
            self._reports.append(report)
            if self.on_side_effect_failure is not None:
                try:
                    self.on_side_effect_failure(report)
                except Exception:
                    logger.exception("[Submit] on_side_effect_failure 回调出错")
            return report

        logger.info("[Submit] %s 通知已发送 target=%s", rule.channel, target)
        report = SideEffectReport(channel=rule.channel, target=target, ok=True)
        self._reports.append(report)
        return report

    @property
    def pending_side_effects(self) -> int:
        return len(self._pending)

    async def drain(self) -> list[SideEffectReport]:
        """等待所有已派发的通知结束，返回并清空报告。"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        reports, self._reports = self._reports, []
        return reports
