"""
Service-type variant — 每种服务类型一个类，自带字段和必填规则。

新增服务类型只需：
  1. 继承 ServiceVariant，声明 key / fields / required
  2. 在 _REGISTRY 注册一行
Validator 和 Orchestrator 只调用 variant 的方法，从不比较 "embryo" 这类字符串。
"""

from typing import Any, Optional

from ..exceptions import ValidationError
from .types import FieldDescriptor, FieldType, in_range

VARIANT_FIELD = "serviceType"


class ServiceVariant:
    key: str = ""
    label: str = ""
    fields: tuple[FieldDescriptor, ...] = ()
    required: frozenset[str] = frozenset()

    @property
    def field_names(self) -> frozenset[str]:
        return frozenset(f.name for f in self.fields)

    def required_fields(self, is_edit_mode: bool = False) -> set[str]:
        return set(self.required)

    def __eq__(self, other):
        return isinstance(other, ServiceVariant) and other.key == self.key

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        return f"{type(self).__name__}()"


# ── ReproductionVariant（产科）──────────────────────────────────────────────

class ReproductionVariant(ServiceVariant):
    key = "reproduction"
    label = "Sản"
    fields = (
        FieldDescriptor("fetusesNumber", FieldType.NUMBER, "Số thai", integer=True,
                        predicate=in_range(1, 10)),
        FieldDescriptor("fetusesWeek", FieldType.NUMBER, "Tuần thai", integer=True,
                        predicate=in_range(0, 42)),
        FieldDescriptor("fetusesDay", FieldType.NUMBER, "Ngày thai", integer=True,
                        predicate=in_range(0, 6)),
        FieldDescriptor("ultrasoundDay", FieldType.DATE, "Ngày siêu âm"),
        FieldDescriptor("headRumpLength", FieldType.NUMBER, "CRL (mm)"),
        FieldDescriptor("neckLength", FieldType.NUMBER, "NT (mm)"),
        FieldDescriptor("combinedTestResult", label="Kết quả xét nghiệm kết hợp"),
        FieldDescriptor("ultrasoundResult", label="Kết quả siêu âm"),
    )
    required = frozenset({"fetusesNumber"})


# ── EmbryoVariant（胚胎）────────────────────────────────────────────────────

class EmbryoVariant(ServiceVariant):
    key = "embryo"
    label = "Phôi"
    fields = (
        FieldDescriptor("biospy", label="Sinh thiết"),
        FieldDescriptor("biospyDate", FieldType.DATE, "Ngày sinh thiết"),
        FieldDescriptor("cellContainingSolution", label="Dung dịch chứa tế bào"),
        FieldDescriptor("embryoCreate", FieldType.NUMBER, "Số phôi tạo", integer=True,
                        predicate=in_range(1, 100)),
        FieldDescriptor("embryoStatus", label="Tình trạng phôi"),
        FieldDescriptor("morphologicalAssessment", label="Đánh giá hình thái"),
        FieldDescriptor("cellNucleus", FieldType.BOOLEAN, "Nhân tế bào"),
        FieldDescriptor("negativeControl", label="Đối chứng âm"),
    )
    required = frozenset({"embryoCreate"})


# ── DiseaseVariant（病理）───────────────────────────────────────────────────

class DiseaseVariant(ServiceVariant):
    key = "disease"
    label = "Bệnh lý"
    fields = (
        FieldDescriptor("symptom", label="Triệu chứng"),
        FieldDescriptor("diagnose", label="Chẩn đoán"),
        FieldDescriptor("testRelated", label="Xét nghiệm liên quan"),
        FieldDescriptor("treatmentMethods", label="Phương pháp điều trị"),
        FieldDescriptor("treatmentTimeDay", FieldType.NUMBER, "Thời gian điều trị (ngày)",
                        integer=True),
        FieldDescriptor("drugResistance", label="Kháng thuốc"),
        FieldDescriptor("relapse", label="Tái phát"),
    )
    required = frozenset({"symptom"})


# ── 注册表 ──────────────────────────────────────────────────────────────────
_REGISTRY: dict[str, ServiceVariant] = {
    v.key: v for v in (ReproductionVariant(), EmbryoVariant(), DiseaseVariant())
}

VARIANT_KEYS: tuple[str, ...] = tuple(_REGISTRY)


def all_variants() -> tuple[ServiceVariant, ...]:
    return tuple(_REGISTRY.values())


def all_variant_field_names() -> frozenset[str]:
    names: set[str] = set()
    for variant in _REGISTRY.values():
        names |= variant.field_names
    return frozenset(names)


def resolve_variant(value: Any) -> Optional[ServiceVariant]:
    """
    draft 里的 serviceType → variant 实例。

    空值 → None（还没选）。大小写不敏感（后端有时返回 "EMBRYO"）。

    Raises:
        ValidationError: 未知的 serviceType
    """
    if isinstance(value, ServiceVariant):
        return value
    if value is None or not str(value).strip():
        return None
    variant = _REGISTRY.get(str(value).strip().lower())
    if variant is None:
        raise ValidationError(
            message=f"Unknown service type: {value!r}.",
            code="UNKNOWN_VARIANT",
            detail={"known_variants": list(VARIANT_KEYS)},
        )
    return variant
