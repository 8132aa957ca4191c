"""
测试 DraftStore：
- get() 是只读快照
- patch / patch_many
- 冻结字段拒绝修改；patch_many 全有或全无
- reset() 不受冻结限制
"""
import pytest

from labwizard.draft import DraftStore
from labwizard.exceptions import FieldFrozenError


class TestDraftStore:

    def test_starts_empty(self):
        assert dict(DraftStore().get()) == {}

    def test_seeded_from_initial(self):
        store = DraftStore(initial={'orderName': 'DH-1'})
        assert store.get()['orderName'] == 'DH-1'

    def test_initial_is_copied(self):
        initial = {'orderName': 'DH-1'}
        store = DraftStore(initial=initial)
        initial['orderName'] = 'changed'
        assert store.get()['orderName'] == 'DH-1'

    def test_snapshot_is_read_only(self):
        store = DraftStore()
        with pytest.raises(TypeError):
            store.get()['x'] = 1

    def test_snapshot_does_not_follow_later_patches(self):
        store = DraftStore()
        snapshot = store.get()
        store.patch('orderName', 'DH-2')
        assert 'orderName' not in snapshot

    def test_patch(self):
        store = DraftStore()
        store.patch('orderNote', 'abc')
        assert store.get()['orderNote'] == 'abc'
        assert 'orderNote' in store
        assert len(store) == 1

    def test_patch_unknown_field_allowed(self):
        store = DraftStore()
        store.patch('somethingElse', 1)
        assert store.get()['somethingElse'] == 1

    def test_patch_many(self):
        store = DraftStore()
        store.patch_many({'doctorId': 'DOC-1', 'hospitalName': 'BV Tu Du'})
        assert store.get() == {'doctorId': 'DOC-1', 'hospitalName': 'BV Tu Du'}


class TestFrozenFields:

    def _store(self):
        return DraftStore(initial={'orderName': 'DH-1', 'paymentType': 'CASH'},
                          frozen_fields={'orderName', 'paymentType'})

    def test_patch_frozen_raises(self):
        store = self._store()
        with pytest.raises(FieldFrozenError) as exc_info:
            store.patch('orderName', 'DH-2')
        assert exc_info.value.detail == {'field': 'orderName'}
        assert store.get()['orderName'] == 'DH-1'

    def test_same_value_write_is_allowed(self):
        store = self._store()
        store.patch('orderName', 'DH-1')
        assert store.get()['orderName'] == 'DH-1'

    def test_patch_many_is_atomic(self):
        store = self._store()
        with pytest.raises(FieldFrozenError):
            store.patch_many({'orderNote': 'new note', 'paymentType': 'ONLINE_PAYMENT'})
        assert 'orderNote' not in store
        assert store.get()['paymentType'] == 'CASH'

    def test_non_frozen_fields_editable(self):
        store = self._store()
        store.patch('orderNote', 'ok')
        assert store.get()['orderNote'] == 'ok'

    def test_reset_bypasses_freeze(self):
        store = self._store()
        store.reset({'orderName': 'DH-9'})
        assert dict(store.get()) == {'orderName': 'DH-9'}
        assert store.frozen_fields == {'orderName', 'paymentType'}
