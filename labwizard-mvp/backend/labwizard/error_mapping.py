"""
远端错误分类：HTTP 状态码 + 服务端 message → RemoteError 子类。

服务端的 message 是英文技术描述（"Customer not found with id ..."、
"duplicate key value violates unique constraint ..."），这里统一转成
展示给用户的越南语提示，原始 message 放进 detail 方便排查。

优先级：
  1. message 里的实体不存在 / 唯一性冲突（服务端有时用 400 / 500 返回这两类）
  2. 401 / 403 → authorization
  3. 404 → reference，409 → duplicate，400 / 422 → validation
  4. 无响应 / 超时 / 5xx → network
  5. 其他 → unknown
"""

from typing import Optional

from .exceptions import (
    AuthorizationError,
    DuplicateError,
    EntityReferenceError,
    RemoteError,
    RemoteValidationError,
    TransientError,
)

# ── 实体不存在：(message 关键字, 展示文案) ───────────────────────────────────
_NOT_FOUND_MESSAGES = (
    (("Customer", "customerId"), "Khách hàng không tồn tại. Vui lòng chọn lại khách hàng."),
    (("Sample collector", "sampleCollectorId"), "Nhân viên thu mẫu không tồn tại. Vui lòng chọn lại."),
    (("Staff analyst", "staffAnalystId"), "Nhân viên phân tích không tồn tại. Vui lòng chọn lại."),
    (("Barcode", "barcodeId"), "Mã barcode không tồn tại hoặc đã được sử dụng."),
    (("Doctor", "doctorId"), "Bác sĩ không tồn tại. Vui lòng chọn lại bác sĩ."),
    (("Patient", "patientId"), "Bệnh nhân không tồn tại."),
    (("Service", "serviceId"), "Dịch vụ không tồn tại."),
    (("Genome", "genomeTestId"), "Xét nghiệm không tồn tại. Vui lòng chọn lại."),
    (("Order", "orderId"), "Đơn hàng không tồn tại."),
)
_NOT_FOUND_DEFAULT = "Dữ liệu không tồn tại. Vui lòng kiểm tra lại."

_DUPLICATE_MARKERS = ("already exists", "already in use", "already used", "duplicate key")
_DUPLICATE_MESSAGES = (
    (("orderName", "order_name"), "Tên đơn hàng đã tồn tại. Vui lòng chọn tên khác."),
    (("Barcode", "barcode"), "Mã barcode đã được sử dụng. Vui lòng chọn mã khác."),
)
_DUPLICATE_DEFAULT = "Giá trị này đã tồn tại. Vui lòng chọn giá trị khác."

_NETWORK_MARKERS = ("timeout", "timed out", "ETIMEDOUT", "network", "Connection", "Service Unavailable")

MSG_UNAUTHORIZED = "Phiên đăng nhập hết hạn. Vui lòng đăng nhập lại."
MSG_FORBIDDEN = "Bạn không có quyền thực hiện thao tác này."
MSG_VALIDATION = "Dữ liệu nhập không hợp lệ. Vui lòng kiểm tra lại."
MSG_NETWORK = "Lỗi kết nối mạng. Vui lòng kiểm tra kết nối internet và thử lại."
MSG_SERVER = "Lỗi máy chủ. Vui lòng thử lại sau hoặc liên hệ quản trị viên."
MSG_UNKNOWN = "Không thể thực hiện thao tác. Vui lòng thử lại."


def _pick(message: str, table, default: str) -> str:
    for keywords, text in table:
        if any(k in message for k in keywords):
            return text
    return default


def classify_remote_error(status_code: Optional[int], message: str = "") -> RemoteError:
    """
    返回（不抛出）对应的 RemoteError 实例，由调用方 raise。

    Args:
        status_code: HTTP 状态码；请求根本没发出去 / 没收到响应时为 None
        message:     服务端返回的 message / error 文本
    """
    message = message or ""
    lowered = message.lower()
    detail = {"status_code": status_code, "server_message": message}

    if "not found" in lowered:
        return EntityReferenceError(
            message=_pick(message, _NOT_FOUND_MESSAGES, _NOT_FOUND_DEFAULT),
            detail=detail,
            http_status=status_code,
        )
    if any(marker in lowered for marker in _DUPLICATE_MARKERS):
        return DuplicateError(
            message=_pick(message, _DUPLICATE_MESSAGES, _DUPLICATE_DEFAULT),
            detail=detail,
            http_status=status_code,
        )

    if status_code == 401 or "unauthorized" in lowered or "token" in lowered:
        return AuthorizationError(message=MSG_UNAUTHORIZED, detail=detail, http_status=status_code)
    if status_code == 403 or "forbidden" in lowered:
        return AuthorizationError(message=MSG_FORBIDDEN, code="FORBIDDEN", detail=detail,
                                  http_status=status_code)
    if status_code == 404:
        return EntityReferenceError(message=_NOT_FOUND_DEFAULT, detail=detail)
    if status_code == 409:
        return DuplicateError(message=_DUPLICATE_DEFAULT, detail=detail)
    if status_code in (400, 422) or "validation" in lowered:
        return RemoteValidationError(message=MSG_VALIDATION, detail=detail,
                                     http_status=status_code)

    if status_code is None or any(m.lower() in lowered for m in _NETWORK_MARKERS):
        return TransientError(message=MSG_NETWORK, detail=detail)
    if status_code >= 500:
        return TransientError(message=MSG_SERVER, code="SERVER_ERROR", detail=detail,
                              http_status=status_code)

    return RemoteError(message=message or MSG_UNKNOWN, detail=detail, http_status=status_code)


def outcome_from_exception(exc: RemoteError):
    """RemoteError → SubmissionFailure（展示层只认 outcome，不认异常）。"""
    from .submission import SubmissionFailure

    return SubmissionFailure(
        error_kind=exc.kind,
        message=exc.message,
        code=exc.code,
        detail=exc.detail,
        retry_allowed=exc.retryable,
    )
