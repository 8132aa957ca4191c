"""
Unit tests for the exception hierarchy.

纯 Python 测试：
1. BaseAppException 默认值
2. 各子类的默认 type / code / http_status
3. 构造时覆盖 code / http_status
4. RemoteError 系列的 kind
5. serialize_exception 统一错误格式
"""
import pytest

from labwizard.exceptions import (
    AuthorizationError,
    BaseAppException,
    DuplicateError,
    EntityReferenceError,
    FieldFrozenError,
    RemoteError,
    RemoteValidationError,
    TransientError,
    UnconfirmedCreateError,
    ValidationError,
)
from labwizard.serializers import serialize_exception


class TestBaseAppException:

    def test_defaults(self):
        exc = BaseAppException('something broke')
        assert exc.message == 'something broke'
        assert exc.type == 'error'
        assert exc.code == 'UNKNOWN_ERROR'
        assert exc.http_status == 500
        assert exc.detail is None

    def test_override_code_and_status(self):
        exc = BaseAppException('x', code='CUSTOM', http_status=418, detail={'a': 1})
        assert exc.code == 'CUSTOM'
        assert exc.http_status == 418
        assert exc.detail == {'a': 1}

    def test_str_is_message(self):
        assert str(BaseAppException('hello')) == 'hello'

    def test_override_does_not_leak_to_class(self):
        BaseAppException('x', code='ONE_OFF')
        assert BaseAppException.code == 'UNKNOWN_ERROR'


class TestSubclassDefaults:

    @pytest.mark.parametrize('cls, type_, code, status', [
        (ValidationError, 'validation_error', 'VALIDATION_ERROR', 400),
        (FieldFrozenError, 'block', 'FIELD_FROZEN', 409),
        (RemoteError, 'remote', 'REMOTE_ERROR', 502),
    ])
    def test_type_code_status(self, cls, type_, code, status):
        exc = cls('msg')
        assert exc.type == type_
        assert exc.code == code
        assert exc.http_status == status
        assert isinstance(exc, BaseAppException)


class TestRemoteErrorKinds:

    @pytest.mark.parametrize('cls, kind', [
        (RemoteError, 'unknown'),
        (EntityReferenceError, 'reference'),
        (DuplicateError, 'duplicate'),
        (TransientError, 'network'),
        (AuthorizationError, 'authorization'),
        (RemoteValidationError, 'validation'),
    ])
    def test_kind(self, cls, kind):
        exc = cls('msg')
        assert exc.kind == kind
        assert exc.type == 'remote'
        assert isinstance(exc, RemoteError)

    def test_only_unconfirmed_create_is_not_retryable(self):
        assert UnconfirmedCreateError('msg').retryable is False
        assert UnconfirmedCreateError('msg').code == 'MISSING_REMOTE_ID'
        for cls in (RemoteError, TransientError, DuplicateError, EntityReferenceError):
            assert cls('msg').retryable is True


class TestSerializeException:

    def test_with_detail(self):
        exc = FieldFrozenError('frozen', detail={'field': 'orderName'})
        assert serialize_exception(exc) == {
            'type': 'block',
            'code': 'FIELD_FROZEN',
            'message': 'frozen',
            'detail': {'field': 'orderName'},
        }

    def test_detail_omitted_when_none(self):
        body = serialize_exception(ValidationError('bad'))
        assert 'detail' not in body
        assert body['type'] == 'validation_error'
