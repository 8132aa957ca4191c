"""
具体表单实现。

新增表单：在此文件添加一个类，然后在 factory.py 注册即可。

已注册表单：
  order    — OrderFormSchema     (7 步，远端 orders，编辑模式冻结订单身份字段)
  specify  — SpecifyFormSchema   (6 步，远端 specify-vote-tests)
"""

from .base import BaseFormSchema
from .types import (
    FieldDescriptor,
    FieldType,
    NotificationRule,
    StepDefinition,
    always,
    email_address,
    is_empty,
    phone_number,
)
from .variants import VARIANT_FIELD, VARIANT_KEYS, all_variant_field_names

PAYMENT_TYPES = ("CASH", "ONLINE_PAYMENT")
GENDERS = ("male", "female", "other")


def _patient_fields(*, with_contact: bool) -> tuple[FieldDescriptor, ...]:
    fields = [
        FieldDescriptor("patientName", label="Họ tên"),
        FieldDescriptor("patientPhone", label="Số điện thoại", predicate=phone_number),
        FieldDescriptor("patientDob", FieldType.DATE, "Ngày sinh"),
        FieldDescriptor("patientGender", FieldType.ENUM, "Giới tính", choices=GENDERS),
        FieldDescriptor("patientEmail", label="Email", predicate=email_address),
    ]
    if with_contact:
        fields += [
            FieldDescriptor("patientJob", label="Nghề nghiệp"),
            FieldDescriptor("patientContactName", label="Người liên hệ"),
            FieldDescriptor("patientContactPhone", label="SĐT người liên hệ",
                            predicate=phone_number),
        ]
    fields.append(FieldDescriptor("patientAddress", label="Địa chỉ"))
    return tuple(fields)


def _clinical_fields(*extra: str) -> tuple[FieldDescriptor, ...]:
    fields = [
        FieldDescriptor("patientHeight", FieldType.NUMBER, "Chiều cao (cm)"),
        FieldDescriptor("patientWeight", FieldType.NUMBER, "Cân nặng (kg)"),
        FieldDescriptor("patientHistory", label="Tiền sử bệnh nhân"),
        FieldDescriptor("familyHistory", label="Tiền sử gia đình"),
        FieldDescriptor("toxicExposure", label="Tiếp xúc độc hại"),
        FieldDescriptor("chronicDisease", label="Bệnh lý mãn tính"),
        FieldDescriptor("acuteDisease", label="Bệnh lý cấp tính"),
    ]
    fields += [FieldDescriptor(name) for name in extra]
    return tuple(fields)


def _genetic_result_fields() -> tuple[FieldDescriptor, ...]:
    return (
        FieldDescriptor("geneticTestResults", label="Kết quả (bản thân)"),
        FieldDescriptor("geneticTestResultsRelationship", label="Kết quả (người thân)"),
    )


def _service_type_field() -> FieldDescriptor:
    return FieldDescriptor(VARIANT_FIELD, FieldType.ENUM, "Nhóm xét nghiệm", choices=VARIANT_KEYS)


def _genome_test_field() -> FieldDescriptor:
    # 选中 genome test 时带出名称 / 样本 / 描述
    return FieldDescriptor(
        "genomeTestId", FieldType.ENUM, "Xét nghiệm",
        options_source="genome-tests", option_key="testId",
        derived={"testName": "testName", "testSample": "testSample",
                 "testDescription": "testContent"},
    )


def _notify_required(*rules: NotificationRule, base=frozenset()):
    """toggle 打开 → 对应联系方式字段必填（字段属于更早的步骤）。"""

    def required(variant, is_edit_mode, draft):
        names = set(base)
        for rule in rules:
            if draft.get(rule.toggle) is True:
                names.add(rule.contact_field)
        return names

    return required


# ── OrderFormSchema ────────────────────────────────────────────────────────
#
# 步骤：
#   1 Thông tin cơ bản đơn hàng      orderName*, paymentType*, doctorId → hospitalName ...
#   2 Hình ảnh phiếu xét nghiệm      specifyVoteTestImagePath
#   3 Thông tin phiếu xét nghiệm     specifyId / 病人信息 / genomeTestId（仅编辑模式必填）
#   4 Thông tin lâm sàng
#   5 Kết quả xét nghiệm di truyền
#   6 Thông tin nhóm xét nghiệm      serviceType（选填）+ 所选 variant 的必填字段
#   7 Ghi chú đơn hàng               orderNote + 邮件 / Zalo 开关
#
# 编辑模式：订单身份字段 + 服务类型组只读。

ORDER_EMAIL = NotificationRule(toggle="sendEmailToPatient", contact_field="patientEmail",
                               channel="email")
ORDER_ZALO = NotificationRule(toggle="sendZaloToPatient", contact_field="patientPhone",
                              channel="zalo")


def _order_test_required(variant, is_edit_mode, draft):
    # 新建订单时第 3 步全部选填；编辑订单必须已选 genome test
    return {"genomeTestId"} if is_edit_mode else set()


def _service_type_required(variant, is_edit_mode, draft):
    # serviceType 可以不选；选了就必须是合法值，variant 的必填字段随之生效
    return set() if is_empty(draft.get(VARIANT_FIELD)) else {VARIANT_FIELD}


class OrderFormSchema(BaseFormSchema):
    name = "order"
    resource = "orders"
    id_key = "orderId"
    title_field = "orderName"
    frozen_fields = frozenset(
        {"orderName", "doctorId", "paymentType", "specifyId", VARIANT_FIELD}
        | all_variant_field_names()
    )
    notifications = (ORDER_EMAIL, ORDER_ZALO)

    def build_steps(self) -> list[StepDefinition]:
        return [
            StepDefinition(
                1, "Thông tin cơ bản đơn hàng",
                fields=(
                    FieldDescriptor("orderName", label="Tên đơn hàng"),
                    FieldDescriptor("doctorId", FieldType.ENUM, "Bác sĩ chỉ định",
                                    options_source="doctors", option_key="doctorId",
                                    derived={"hospitalName": "hospitalName"}),
                    FieldDescriptor("hospitalName", label="Bệnh viện", submit=False),
                    FieldDescriptor("customerId", FieldType.ENUM, "Khách hàng",
                                    options_source="customers", option_key="customerId"),
                    FieldDescriptor("staffId", FieldType.ENUM, "Người thu tiền",
                                    options_source="hospital-staffs", option_key="staffId"),
                    FieldDescriptor("paymentAmount", FieldType.NUMBER, "Số tiền"),
                    FieldDescriptor("staffAnalystId", FieldType.ENUM, "Nhân viên phụ trách",
                                    options_source="doctors", option_key="doctorId"),
                    FieldDescriptor("sampleCollectorId", FieldType.ENUM, "Nhân viên thu mẫu",
                                    options_source="hospital-staffs", option_key="staffId"),
                    FieldDescriptor("barcodeId", FieldType.ENUM, "Mã Barcode PCĐ",
                                    options_source="barcodes", option_key="barcode"),
                    FieldDescriptor("paymentType", FieldType.ENUM, "Hình thức thanh toán",
                                    choices=PAYMENT_TYPES),
                ),
                required=always("orderName", "paymentType"),
            ),
            StepDefinition(
                2, "Hình ảnh phiếu xét nghiệm",
                fields=(FieldDescriptor("specifyVoteTestImagePath", label="Ảnh phiếu"),),
            ),
            StepDefinition(
                3, "Thông tin phiếu xét nghiệm",
                fields=(
                    FieldDescriptor("specifyId", FieldType.ENUM, "Phiếu xét nghiệm",
                                    options_source="specify-vote-tests",
                                    option_key="specifyVoteID"),
                    *_patient_fields(with_contact=True),
                    _genome_test_field(),
                    FieldDescriptor("testName", label="Tên xét nghiệm"),
                    FieldDescriptor("testSample", label="Mẫu xét nghiệm"),
                    FieldDescriptor("testContent", label="Nội dung xét nghiệm"),
                    FieldDescriptor("samplingSite", label="Nơi lấy mẫu"),
                    FieldDescriptor("sampleCollectDate", FieldType.DATE, "Ngày lấy mẫu"),
                    FieldDescriptor("embryoNumber", FieldType.NUMBER, "Số phôi", integer=True),
                ),
                required=_order_test_required,
            ),
            StepDefinition(
                4, "Thông tin lâm sàng",
                fields=_clinical_fields("medicalHistory", "medicalUsing"),
            ),
            StepDefinition(5, "Kết quả xét nghiệm di truyền", fields=_genetic_result_fields()),
            StepDefinition(
                6, "Thông tin nhóm xét nghiệm",
                fields=(_service_type_field(),),
                required=_service_type_required,
                variant_fields=True,
            ),
            StepDefinition(
                7, "Ghi chú đơn hàng",
                fields=(
                    FieldDescriptor("orderNote", label="Ghi chú"),
                    FieldDescriptor("sendEmailToPatient", FieldType.BOOLEAN,
                                    "Gửi email cho bệnh nhân", submit=False),
                    FieldDescriptor("sendZaloToPatient", FieldType.BOOLEAN,
                                    "Gửi Zalo cho bệnh nhân", submit=False),
                ),
                required=_notify_required(ORDER_EMAIL, ORDER_ZALO),
            ),
        ]


# ── SpecifyFormSchema ──────────────────────────────────────────────────────
#
# 步骤：
#   1 Thông tin bệnh nhân            新病人 → patientName*, patientPhone*；否则 selectedPatientId*
#   2 Thông tin lâm sàng
#   3 Loại dịch vụ & Xét nghiệm      serviceType*, serviceId*, genomeTestId*
#   4 Kết quả xét nghiệm di truyền
#   5 Thông tin nhóm xét nghiệm      所选 variant 的字段
#   6 Ghi chú                        specifyNote + 邮件开关

SPECIFY_EMAIL = NotificationRule(toggle="sendEmailPatient", contact_field="patientEmail",
                                 channel="email")


def _specify_patient_required(variant, is_edit_mode, draft):
    if draft.get("isNewPatient") is True:
        return {"patientName", "patientPhone"}
    return {"selectedPatientId"}


class SpecifyFormSchema(BaseFormSchema):
    name = "specify"
    resource = "specify-vote-tests"
    id_key = "specifyVoteID"
    title_field = "patientName"
    frozen_fields = frozenset({"isNewPatient", "selectedPatientId", "serviceId"})
    notifications = (SPECIFY_EMAIL,)

    def build_steps(self) -> list[StepDefinition]:
        return [
            StepDefinition(
                1, "Thông tin bệnh nhân",
                fields=(
                    FieldDescriptor("isNewPatient", FieldType.BOOLEAN, "Bệnh nhân mới"),
                    FieldDescriptor("selectedPatientId", FieldType.ENUM, "Bệnh nhân",
                                    options_source="patients", option_key="patientId"),
                    *_patient_fields(with_contact=False),
                ),
                required=_specify_patient_required,
            ),
            StepDefinition(2, "Thông tin lâm sàng", fields=_clinical_fields()),
            StepDefinition(
                3, "Loại dịch vụ & Xét nghiệm",
                fields=(
                    _service_type_field(),
                    FieldDescriptor("serviceId", FieldType.ENUM, "Loại dịch vụ",
                                    options_source="services", option_key="serviceId"),
                    _genome_test_field(),
                    FieldDescriptor("doctorId", FieldType.ENUM, "Bác sĩ chỉ định",
                                    options_source="doctors", option_key="doctorId"),
                    FieldDescriptor("samplingSite", label="Nơi lấy mẫu"),
                    FieldDescriptor("sampleCollectDate", FieldType.DATE, "Ngày lấy mẫu"),
                    FieldDescriptor("embryoNumber", FieldType.NUMBER, "Số phôi (nếu có)",
                                    integer=True),
                ),
                required=always(VARIANT_FIELD, "serviceId", "genomeTestId"),
            ),
            StepDefinition(4, "Kết quả xét nghiệm di truyền", fields=_genetic_result_fields()),
            StepDefinition(5, "Thông tin nhóm xét nghiệm", variant_fields=True),
            StepDefinition(
                6, "Ghi chú",
                fields=(
                    FieldDescriptor("specifyNote", label="Ghi chú phiếu xét nghiệm"),
                    FieldDescriptor("sendEmailPatient", FieldType.BOOLEAN,
                                    "Gửi email cho bệnh nhân", submit=False),
                ),
                required=_notify_required(SPECIFY_EMAIL),
            ),
        ]
