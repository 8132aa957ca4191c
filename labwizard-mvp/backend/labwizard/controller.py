"""
WizardController — 一个 wizard 实例的状态机。

状态：
  AT_STEP      停在某一步，可以编辑 / 前进 / 后退
  SUBMITTING   complete() 进行中，拒绝再次 complete()
  SUBMITTED    提交成功，终态

规则：
  - next() 只在当前步骤校验通过时前进，否则原地不动返回 False
  - previous() / go_to_step() 只能往回走，永远不校验
  - complete() 只能在最后一步调用，且所有步骤都校验通过；同一时刻最多一个远端请求
  - 提交失败回到最后一步，last_failure 留给界面展示；retry_allowed=False 的失败之后不能再提交
"""

import logging
from enum import Enum
from typing import Any, Mapping, Optional

from .draft import DraftStore
from .exceptions import ValidationError
from .remote.base import BaseSelectionSource
from .schema.base import BaseFormSchema
from .schema.variants import ServiceVariant, resolve_variant
from .submission import SubmissionFailure, SubmissionOrchestrator, SubmissionOutcome
from .validator import StepValidator, ValidationResult

logger = logging.getLogger(__name__)


class WizardState(str, Enum):
    AT_STEP = "at_step"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class WizardController:

    def __init__(self, schema: BaseFormSchema, orchestrator: SubmissionOrchestrator, *,
                 is_edit_mode: bool = False, entity_id: Optional[str] = None,
                 initial: Optional[Mapping[str, Any]] = None,
                 selection_source: Optional[BaseSelectionSource] = None):
        if is_edit_mode and not entity_id:
            raise ValidationError(
                message=f"Editing a {schema.name!r} requires an entity id.",
                code="MISSING_ENTITY_ID",
            )
        self.schema = schema
        self.orchestrator = orchestrator
        self.selection_source = selection_source
        self._is_edit_mode = is_edit_mode
        self._entity_id = entity_id
        frozen = schema.frozen_fields if is_edit_mode else ()
        self._draft = DraftStore(initial=initial, frozen_fields=frozen)
        self._validator = StepValidator(schema)
        self._current = 1
        self._visited = {1}
        self._state = WizardState.AT_STEP
        self._outcome: Optional[SubmissionOutcome] = None
        self._last_failure: Optional[SubmissionFailure] = None

    # ── 只读属性 ───────────────────────────────────────────────────────────

    @property
    def is_edit_mode(self) -> bool:
        return self._is_edit_mode

    @property
    def entity_id(self) -> Optional[str]:
        return self._entity_id

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def current_step_index(self) -> int:
        return self._current

    @property
    def total_steps(self) -> int:
        return self.schema.total_steps

    @property
    def step_titles(self) -> list[str]:
        return self.schema.step_titles

    @property
    def progress(self) -> float:
        return self._current / self.schema.total_steps

    @property
    def is_last_step(self) -> bool:
        return self._current == self.schema.total_steps

    @property
    def draft_snapshot(self) -> Mapping[str, Any]:
        return self._draft.get()

    @property
    def outcome(self) -> Optional[SubmissionOutcome]:
        return self._outcome

    @property
    def last_failure(self) -> Optional[SubmissionFailure]:
        return self._last_failure

    @property
    def variant(self) -> Optional[ServiceVariant]:
        """当前 draft 选中的 variant。未选或值无法识别时为 None（由校验报 invalid_choice）。"""
        try:
            return resolve_variant(self._draft.get().get(self.schema.variant_field))
        except ValidationError:
            return None

    def visible_fields(self, step_index: Optional[int] = None):
        return self.schema.fields_for_step(step_index or self._current, self.variant)

    # ── 校验 ───────────────────────────────────────────────────────────────

    def validate(self, step_index: Optional[int] = None) -> ValidationResult:
        return self._validator.validate(
            step_index or self._current, self._draft.get(), self.variant, self._is_edit_mode,
        )

    def field_errors(self, step_index: Optional[int] = None) -> dict[str, str]:
        return dict(self.validate(step_index).errors)

    @property
    def can_advance(self) -> bool:
        return self.validate().can_advance

    def first_invalid_step(self) -> Optional[int]:
        """第一个校验不通过的步骤；全部通过时为 None。"""
        for step_index in range(1, self.schema.total_steps + 1):
            if not self.validate(step_index).can_advance:
                return step_index
        return None

    # ── 导航 ───────────────────────────────────────────────────────────────

    def next(self) -> bool:
        if self._state != WizardState.AT_STEP or self.is_last_step:
            return False
        result = self.validate()
        if not result.can_advance:
            logger.info("[Wizard] %s 第 %d 步校验未通过: %s",
                        self.schema.name, self._current, result.errors)
            return False
        self._current += 1
        self._visited.add(self._current)
        return True

    def previous(self) -> bool:
        if self._state != WizardState.AT_STEP or self._current == 1:
            return False
        self._current -= 1
        return True

    def go_to_step(self, step_index: int) -> bool:
        """跳回已经到过的步骤（进度条点击）。不能往前跳。"""
        self.schema.step(step_index)
        if self._state != WizardState.AT_STEP:
            return False
        if step_index > self._current or step_index not in self._visited:
            return False
        self._current = step_index
        return True

    # ── 编辑 ───────────────────────────────────────────────────────────────

    def patch(self, name: str, value: Any) -> None:
        self._ensure_editable()
        self._draft.patch(name, value)

    def patch_many(self, partial: Mapping[str, Any]) -> None:
        self._ensure_editable()
        self._draft.patch_many(partial)

    def _ensure_editable(self) -> None:
        if self._state != WizardState.AT_STEP:
            raise ValidationError(
                message=f"Wizard is {self._state.value}; the draft can no longer be edited.",
                code="WIZARD_LOCKED",
            )

    # ── 下拉选项 ───────────────────────────────────────────────────────────

    async def field_options(self, name: str) -> list[dict[str, Any]]:
        descriptor = self._selectable(name)
        return await self.selection_source.list_entities(descriptor.options_source)

    async def select(self, name: str, entity: Mapping[str, Any]) -> None:
        """
        选中一个实体：写入字段本身 + 派生字段（例如医生 → 医院名），一次 patch_many。
        """
        descriptor = self._selectable(name)
        key = descriptor.option_key or "id"
        partial = {name: entity.get(key)}
        for source_attr, field_name in descriptor.derived.items():
            partial[field_name] = entity.get(source_attr)
        self.patch_many(partial)

    def _selectable(self, name: str):
        descriptor = self.schema.descriptor(name)
        if descriptor is None or descriptor.options_source is None:
            raise ValidationError(
                message=f"Field {name!r} has no selection source.",
                code="NOT_SELECTABLE",
            )
        if self.selection_source is None:
            raise ValidationError(
                message="No selection source configured for this wizard.",
                code="NO_SELECTION_SOURCE",
            )
        return descriptor

    # ── 提交 ───────────────────────────────────────────────────────────────

    async def complete(self) -> Optional[SubmissionOutcome]:
        """
        提交 draft。

        Returns:
            None                 已在提交中 / 已提交 / 不在最后一步 / 校验不通过
                                 （停到第一个不通过的步骤）/ 上次结果未知不可重试
            SubmissionSuccess    成功（终态）
            SubmissionFailure    失败（回到最后一步，可再次 complete() 重试）
        """
        if self._state != WizardState.AT_STEP:
            logger.info("[Wizard] %s complete() 被忽略，当前状态=%s",
                        self.schema.name, self._state.value)
            return None
        if self._last_failure is not None and not self._last_failure.retry_allowed:
            logger.warning("[Wizard] %s 上次提交结果未知 (%s)，拒绝再次提交",
                           self.schema.name, self._last_failure.code)
            return None
        if not self.is_last_step:
            return None
        invalid_step = self.first_invalid_step()
        if invalid_step is not None:
            # 提交前重新校验所有步骤，停在第一个不通过的步骤
            logger.info("[Wizard] %s 第 %d 步校验未通过，停在该步",
                        self.schema.name, invalid_step)
            self._current = invalid_step
            return None

        self._state = WizardState.SUBMITTING
        logger.info("[Wizard] %s 开始提交 (edit=%s)", self.schema.name, self._is_edit_mode)
        try:
            outcome = await self.orchestrator.submit(
                self._draft.get(), self.variant, self._is_edit_mode, self._entity_id,
            )
        finally:
            # 非预期异常向上抛之前释放 SUBMITTING
            if self._state == WizardState.SUBMITTING:
                self._state = WizardState.AT_STEP

        self._outcome = outcome
        if outcome.ok:
            self._state = WizardState.SUBMITTED
            self._last_failure = None
        else:
            self._state = WizardState.AT_STEP
            self._current = self.schema.total_steps
            self._last_failure = outcome
        return outcome
