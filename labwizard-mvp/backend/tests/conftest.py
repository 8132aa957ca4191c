"""
Shared fixtures for all tests.

factory-boy factories live here so both unit/ and integration/ can import them.
Remote collaborators are AsyncMocks; nothing here talks to the network.
"""
from unittest.mock import AsyncMock

import factory
import pytest

from labwizard.controller import WizardController
from labwizard.remote.base import BaseNotifier, BaseSelectionSource, BaseSubmitClient
from labwizard.schema import get_form_schema
from labwizard.submission import SubmissionOrchestrator


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class OrderDraftFactory(factory.DictFactory):
    """Draft that passes every step of the order wizard (embryo variant)."""

    orderName = factory.Sequence(lambda n: f'DH-{n:04d}')
    paymentType = 'CASH'
    paymentAmount = '1500000'
    patientName = 'Nguyen Van A'
    patientPhone = '0912345678'
    patientEmail = 'nguyenvana@example.com'
    sampleCollectDate = '2024-05-02'
    serviceType = 'embryo'
    embryoCreate = '4'
    orderNote = '  Giao mẫu trước 10h  '
    sendEmailToPatient = False
    sendZaloToPatient = False


class ReproductionOrderDraftFactory(OrderDraftFactory):
    serviceType = 'reproduction'
    embryoCreate = None
    fetusesNumber = '2'
    fetusesWeek = '12'
    fetusesDay = '3'


class DiseaseOrderDraftFactory(OrderDraftFactory):
    serviceType = 'disease'
    embryoCreate = None
    symptom = 'Sốt kéo dài'
    diagnose = 'Theo dõi'


class SpecifyDraftFactory(factory.DictFactory):
    """Draft that passes every step of the specify wizard (new patient, disease variant)."""

    isNewPatient = True
    patientName = 'Tran Thi B'
    patientPhone = '0987654321'
    patientEmail = 'tranthib@example.com'
    serviceType = 'disease'
    serviceId = 'SV-01'
    genomeTestId = 'GT-100'
    symptom = 'Đau đầu'
    sendEmailPatient = False


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def order_schema():
    return get_form_schema('order')


@pytest.fixture
def specify_schema():
    return get_form_schema('specify')


@pytest.fixture
def submit_client():
    """create() returns a fresh remote id; update() succeeds."""
    client = AsyncMock(spec=BaseSubmitClient)
    client.create.return_value = 'ORD-0001'
    client.update.return_value = None
    return client


@pytest.fixture
def notifier():
    return AsyncMock(spec=BaseNotifier)


@pytest.fixture
def selection_source():
    source = AsyncMock(spec=BaseSelectionSource)
    source.list_entities.return_value = [
        {'doctorId': 'DOC-1', 'doctorName': 'BS. Le Van C', 'hospitalName': 'BV Tu Du'},
        {'doctorId': 'DOC-2', 'doctorName': 'BS. Pham D', 'hospitalName': 'BV Cho Ray'},
    ]
    return source


@pytest.fixture
def make_wizard(submit_client, notifier, selection_source):
    """
    Build a controller wired to the mock collaborators.

    Usage: wizard = make_wizard('order', is_edit_mode=True, entity_id='ORD-9', initial={...})
    """
    def _make(form='order', *, notifications_enabled=True, on_side_effect_failure=None, **kwargs):
        schema = get_form_schema(form)
        orchestrator = SubmissionOrchestrator(
            schema,
            client=submit_client,
            notifier=notifier,
            on_side_effect_failure=on_side_effect_failure,
            notifications_enabled=notifications_enabled,
        )
        return WizardController(schema, orchestrator, selection_source=selection_source, **kwargs)

    return _make


def advance_to_last_step(wizard):
    """Walk forward until the last step; fails the test if a step blocks."""
    while not wizard.is_last_step:
        assert wizard.next(), wizard.field_errors()
