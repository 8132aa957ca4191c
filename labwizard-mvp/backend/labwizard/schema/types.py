"""
字段 / 步骤的声明式描述 — Registry 唯一认识的标准格式。

FieldDescriptor 只描述「字段是什么」：类型、选项、单字段校验规则。
「字段什么时候必填」由 StepDefinition.required 决定（可以跨步骤引用字段）。

所有 predicate 都是纯函数：value → 错误原因（str）或 None。
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Optional

# ── 共用校验正则 ───────────────────────────────────────────────────────────
PHONE_RE = re.compile(r"^[0-9]{10,11}$")
EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$")

Predicate = Callable[[Any], Optional[str]]


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    ENUM = "enum"
    BOOLEAN = "boolean"


def is_empty(value: Any) -> bool:
    """None、空白字符串、NaN 都算「没填」。False 是有效的布尔值。"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float):
        return math.isnan(value)
    return False


def parse_number(value: Any, integer: bool = False) -> int | float:
    """
    文本输入 → 数字。表单里的数字都是字符串（"12"、"1.5"），提交前统一转换。
    无法解析时抛 ValueError。
    """
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    number = value if isinstance(value, (int, float)) else float(str(value).strip())
    if isinstance(number, float):
        if math.isnan(number) or math.isinf(number):
            raise ValueError(f"not a finite number: {value!r}")
        if number.is_integer():
            return int(number)
        if integer:
            raise ValueError(f"not an integer: {value!r}")
    return number


def parse_date(value: Any) -> str:
    """接受 date / datetime / "YYYY-MM-DD" / "YYYY-MM-DDTHH:MM"，返回 ISO 字符串。"""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if "T" in text or " " in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).isoformat()
    return date.fromisoformat(text).isoformat()


# ── Predicates ─────────────────────────────────────────────────────────────

def phone_number(value: Any) -> Optional[str]:
    if not PHONE_RE.match(str(value).strip()):
        return "invalid_phone"
    return None


def email_address(value: Any) -> Optional[str]:
    if not EMAIL_RE.match(str(value).strip()):
        return "invalid_email"
    return None


def in_range(low: float, high: float) -> Predicate:
    """数值范围检查（闭区间），例如孕周 0..42。"""

    def check(value: Any) -> Optional[str]:
        try:
            number = parse_number(value)
        except ValueError:
            return "invalid_number"
        if number < low or number > high:
            return "out_of_range"
        return None

    return check


@dataclass(frozen=True)
class FieldDescriptor:
    """
    单个字段的描述。

    submit          False 表示纯展示字段（例如由医生带出的医院名），不进 payload。
    options_source  selection-source 的实体名（"doctors" / "genome-tests" ...）。
    option_key      选中实体后写入本字段的实体属性名。
    derived         选中实体时一起写入的派生字段：{实体属性: draft 字段名}。
    """

    name: str
    type: FieldType = FieldType.TEXT
    label: str = ""
    predicate: Optional[Predicate] = None
    choices: tuple[str, ...] = ()
    integer: bool = False
    submit: bool = True
    options_source: Optional[str] = None
    option_key: Optional[str] = None
    derived: dict[str, str] = field(default_factory=dict)

    def check(self, value: Any) -> Optional[str]:
        """类型检查 + 自定义 predicate。调用方已确保 value 非空。"""
        if self.type == FieldType.NUMBER:
            try:
                parse_number(value, integer=self.integer)
            except ValueError:
                return "invalid_number"
        elif self.type == FieldType.DATE:
            try:
                parse_date(value)
            except ValueError:
                return "invalid_date"
        elif self.type == FieldType.ENUM:
            # 远端实体选项（options_source）没有静态 choices，不在这里检查
            if self.choices and self.canonical_choice(value) is None:
                return "invalid_choice"
        elif self.type == FieldType.BOOLEAN:
            if not isinstance(value, bool):
                return "invalid_choice"
        if self.predicate is not None:
            return self.predicate(value)
        return None

    def canonical_choice(self, value: Any) -> Optional[str]:
        """大小写不敏感地匹配 choices，返回标准写法（"cash" → "CASH"）。"""
        text = str(value).strip().lower()
        for choice in self.choices:
            if choice.lower() == text:
                return choice
        return None


RequiredFn = Callable[[Any, bool, dict], set]


def always(*names: str) -> RequiredFn:
    """最常见的情况：不依赖 variant / draft 的固定必填集合。"""
    fixed = frozenset(names)
    return lambda variant, is_edit_mode, draft: set(fixed)


@dataclass(frozen=True)
class StepDefinition:
    """
    一个步骤。

    required(variant, is_edit_mode, draft) → 必填字段集合，
    可以包含其他步骤拥有的字段（例如「发送邮件」开关要求第 3 步的 patientEmail）。
    variant_fields=True 表示该步骤同时承载所选 variant 的专属字段。
    """

    index: int
    title: str
    fields: tuple[FieldDescriptor, ...] = ()
    required: RequiredFn = field(default=always())
    variant_fields: bool = False

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)


@dataclass(frozen=True)
class NotificationRule:
    """提交成功后的副作用：toggle 打开且 contact 字段有值才发送。"""

    toggle: str
    contact_field: str
    channel: str  # "email" | "zalo"
