"""
测试表单注册表：
- 工厂函数 get_form_schema
- 步骤结构（标题 / 数量 / 未知步骤）
- fields_for_step 只列出所选 variant 的字段
- required_fields：跨步骤必填、variant 必填、编辑模式去掉冻结字段
- FieldDescriptor.check 的各类原因码
- resolve_variant
"""

import pytest

from labwizard.exceptions import ValidationError
from labwizard.schema import get_form_schema, resolve_variant
from labwizard.schema.forms import OrderFormSchema, SpecifyFormSchema
from labwizard.schema.types import FieldDescriptor, FieldType, is_empty, parse_date, parse_number
from labwizard.schema.variants import DiseaseVariant, EmbryoVariant, ReproductionVariant


# ── get_form_schema ───────────────────────────────────────────────────────

class TestGetFormSchema:

    def test_order(self):
        assert isinstance(get_form_schema('order'), OrderFormSchema)

    def test_specify(self):
        assert isinstance(get_form_schema('specify'), SpecifyFormSchema)

    def test_unknown_form_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            get_form_schema('invoice')
        assert exc_info.value.code == 'UNKNOWN_FORM'
        assert 'order' in exc_info.value.detail['known_forms']


# ── Step structure ────────────────────────────────────────────────────────

class TestStepStructure:

    def test_order_has_seven_steps(self, order_schema):
        assert order_schema.total_steps == 7
        assert order_schema.step_titles[0] == 'Thông tin cơ bản đơn hàng'
        assert order_schema.step_titles[-1] == 'Ghi chú đơn hàng'

    def test_specify_has_six_steps(self, specify_schema):
        assert specify_schema.total_steps == 6

    @pytest.mark.parametrize('index', [0, 8, -1, '1'])
    def test_unknown_step_raises(self, order_schema, index):
        with pytest.raises(ValidationError) as exc_info:
            order_schema.step(index)
        assert exc_info.value.code == 'UNKNOWN_STEP'

    def test_field_names_unique_across_steps(self, order_schema):
        names = [n for step in order_schema.steps for n in step.field_names]
        assert len(names) == len(set(names))


# ── fields_for_step ───────────────────────────────────────────────────────

class TestFieldsForStep:

    def test_variant_step_without_variant_lists_only_service_type(self, order_schema):
        names = [f.name for f in order_schema.fields_for_step(6)]
        assert names == ['serviceType']

    def test_variant_step_lists_selected_variant_only(self, order_schema):
        names = {f.name for f in order_schema.fields_for_step(6, EmbryoVariant())}
        assert 'embryoCreate' in names
        assert 'fetusesNumber' not in names
        assert 'symptom' not in names

    def test_non_variant_step_ignores_variant(self, order_schema):
        with_variant = order_schema.fields_for_step(1, DiseaseVariant())
        without = order_schema.fields_for_step(1)
        assert with_variant == without

    def test_specify_variant_step(self, specify_schema):
        names = [f.name for f in specify_schema.fields_for_step(5, ReproductionVariant())]
        assert names[0] == 'fetusesNumber'


# ── required_fields ───────────────────────────────────────────────────────

class TestRequiredFields:

    def test_order_step1(self, order_schema):
        assert order_schema.required_fields(1) == {'orderName', 'paymentType'}

    def test_order_step1_edit_mode_drops_frozen(self, order_schema):
        assert order_schema.required_fields(1, is_edit_mode=True) == set()

    def test_order_step3_optional_on_create(self, order_schema):
        assert order_schema.required_fields(3, draft={}) == set()

    def test_order_step3_edit_mode_requires_genome_test(self, order_schema):
        assert order_schema.required_fields(3, is_edit_mode=True, draft={}) == {'genomeTestId'}

    def test_order_step6_service_type_optional(self, order_schema):
        assert order_schema.required_fields(6, draft={}) == set()

    def test_order_step6_variant_required(self, order_schema):
        cases = [('reproduction', ReproductionVariant(), 'fetusesNumber'),
                 ('embryo', EmbryoVariant(), 'embryoCreate'),
                 ('disease', DiseaseVariant(), 'symptom')]
        for key, variant, field in cases:
            required = order_schema.required_fields(6, variant, draft={'serviceType': key})
            assert required == {'serviceType', field}

    def test_order_step6_edit_mode_freezes_variant_group(self, order_schema):
        assert order_schema.required_fields(6, EmbryoVariant(), is_edit_mode=True) == set()

    def test_order_step7_email_toggle_requires_email(self, order_schema):
        draft = {'sendEmailToPatient': True}
        assert order_schema.required_fields(7, draft=draft) == {'patientEmail'}

    def test_order_step7_zalo_toggle_requires_phone(self, order_schema):
        draft = {'sendZaloToPatient': True, 'sendEmailToPatient': False}
        assert order_schema.required_fields(7, draft=draft) == {'patientPhone'}

    def test_specify_step1_new_patient(self, specify_schema):
        required = specify_schema.required_fields(1, draft={'isNewPatient': True})
        assert required == {'patientName', 'patientPhone'}

    def test_specify_step1_existing_patient(self, specify_schema):
        assert specify_schema.required_fields(1, draft={}) == {'selectedPatientId'}

    def test_specify_step1_edit_mode(self, specify_schema):
        assert specify_schema.required_fields(1, is_edit_mode=True, draft={}) == set()

    def test_specify_step3(self, specify_schema):
        assert specify_schema.required_fields(3) == {'serviceType', 'serviceId', 'genomeTestId'}

    def test_specify_step5_variant(self, specify_schema):
        assert specify_schema.required_fields(5, EmbryoVariant()) == {'embryoCreate'}
        assert specify_schema.required_fields(5) == set()


class TestSubmittableFields:

    def test_ui_only_fields_excluded(self, order_schema):
        names = {f.name for f in order_schema.submittable_fields(EmbryoVariant())}
        assert 'hospitalName' not in names
        assert 'sendEmailToPatient' not in names
        assert 'sendZaloToPatient' not in names
        assert 'orderName' in names

    def test_only_selected_variant(self, order_schema):
        names = {f.name for f in order_schema.submittable_fields(DiseaseVariant())}
        assert {'symptom', 'diagnose'} <= names
        assert 'fetusesNumber' not in names
        assert 'embryoCreate' not in names


# ── FieldDescriptor.check ─────────────────────────────────────────────────

class TestFieldDescriptorCheck:

    def test_phone(self, order_schema):
        phone = order_schema.descriptor('patientPhone')
        assert phone.check('0912345678') is None
        assert phone.check('09123456789') is None
        assert phone.check('091234') == 'invalid_phone'
        assert phone.check('09a2345678') == 'invalid_phone'

    def test_email(self, order_schema):
        email = order_schema.descriptor('patientEmail')
        assert email.check('a.b@example.com.vn') is None
        assert email.check('not-an-email') == 'invalid_email'

    def test_number(self):
        number = FieldDescriptor('n', FieldType.NUMBER)
        assert number.check('1.5') is None
        assert number.check('abc') == 'invalid_number'
        assert number.check('nan') == 'invalid_number'

    def test_integer(self):
        integer = FieldDescriptor('n', FieldType.NUMBER, integer=True)
        assert integer.check('3') is None
        assert integer.check('3.0') is None
        assert integer.check('3.5') == 'invalid_number'

    def test_date(self, order_schema):
        collect = order_schema.descriptor('sampleCollectDate')
        assert collect.check('2024-05-02') is None
        assert collect.check('2024-05-02T08:30') is None
        assert collect.check('02/05/2024') == 'invalid_date'

    def test_enum(self, order_schema):
        payment = order_schema.descriptor('paymentType')
        assert payment.check('ONLINE_PAYMENT') is None
        assert payment.check('CHEQUE') == 'invalid_choice'

    def test_enum_case_insensitive(self, order_schema):
        payment = order_schema.descriptor('paymentType')
        assert payment.check('cash') is None
        assert payment.canonical_choice('cash') == 'CASH'
        assert order_schema.descriptor('serviceType').check('EMBRYO') is None

    def test_enum_from_remote_source_not_checked_locally(self, order_schema):
        assert order_schema.descriptor('doctorId').check('DOC-77') is None

    def test_range(self, order_schema):
        week = order_schema.descriptor('fetusesWeek')
        assert week.check('42') is None
        assert week.check('43') == 'out_of_range'
        day = order_schema.descriptor('fetusesDay')
        assert day.check('7') == 'out_of_range'

    def test_boolean(self, order_schema):
        toggle = order_schema.descriptor('sendEmailToPatient')
        assert toggle.check(False) is None
        assert toggle.check('yes') == 'invalid_choice'


class TestValueHelpers:

    @pytest.mark.parametrize('value, expected', [
        (None, True), ('', True), ('   ', True), (float('nan'), True),
        (False, False), (0, False), ('x', False),
    ])
    def test_is_empty(self, value, expected):
        assert is_empty(value) is expected

    def test_parse_number(self):
        assert parse_number(' 12 ') == 12
        assert isinstance(parse_number('12.0'), int)
        assert parse_number('1.25') == 1.25
        with pytest.raises(ValueError):
            parse_number(True)
        with pytest.raises(ValueError):
            parse_number('inf')

    def test_parse_date(self):
        assert parse_date('2024-05-02') == '2024-05-02'
        assert parse_date('2024-05-02T08:30:00Z') == '2024-05-02T08:30:00+00:00'


# ── resolve_variant ───────────────────────────────────────────────────────

class TestResolveVariant:

    def test_known(self):
        assert resolve_variant('embryo') == EmbryoVariant()

    def test_case_insensitive(self):
        assert isinstance(resolve_variant('REPRODUCTION'), ReproductionVariant)

    @pytest.mark.parametrize('value', [None, '', '  '])
    def test_empty_is_none(self, value):
        assert resolve_variant(value) is None

    def test_instance_passthrough(self):
        variant = DiseaseVariant()
        assert resolve_variant(variant) is variant

    def test_unknown_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_variant('oncology')
        assert exc_info.value.code == 'UNKNOWN_VARIANT'
