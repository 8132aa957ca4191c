"""
统一异常体系。

所有业务异常继承 BaseAppException，包含：
- type:        错误类型标识（validation_error / block / remote）
- code:        业务错误码（UNKNOWN_FORM / FIELD_FROZEN / BARCODE_IN_USE / ...）
- message:     人类可读的描述（直接展示给用户）
- detail:      可选的附加信息（dict / list / None）
- http_status: 对应的 HTTP 状态码（远端错误时为服务端返回值）

RemoteError 系列额外带 kind，对应 SubmissionFailure.error_kind：
  reference / duplicate / network / authorization / validation / unknown

Wizard 内部只需 raise，SubmissionOrchestrator 在边界统一转成 SubmissionFailure。
"""


class BaseAppException(Exception):
    """所有业务异常的基类。"""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ValidationError(BaseAppException):
    """配置或调用参数错误（未知表单 / 步骤 / variant）。400。"""

    type = 'validation_error'
    code = 'VALIDATION_ERROR'
    http_status = 400


class FieldFrozenError(BaseAppException):
    """编辑模式下尝试修改已冻结字段（订单名、付款方式、医生 ...）。409。"""

    type = 'block'
    code = 'FIELD_FROZEN'
    http_status = 409


# ── 远端错误 ──────────────────────────────────────────────────────────────
#
# 由 remote/ 下的 client 抛出，error_mapping.classify_remote_error() 负责
# 根据 HTTP 状态码和服务端 message 选择具体子类。

class RemoteError(BaseAppException):
    """远端 create/update 调用失败。kind 决定前端的恢复方式。"""

    type = 'remote'
    code = 'REMOTE_ERROR'
    kind = 'unknown'
    retryable = True
    http_status = 502


class EntityReferenceError(RemoteError):
    """引用的实体（客户 / 医生 / barcode ...）不存在。不自动重试，回到最后一步重新选择。"""

    code = 'ENTITY_NOT_FOUND'
    kind = 'reference'
    http_status = 404


class DuplicateError(RemoteError):
    """唯一性冲突（订单名已存在、barcode 已被使用 ...）。回到最后一步。"""

    code = 'DUPLICATE'
    kind = 'duplicate'
    http_status = 409


class TransientError(RemoteError):
    """
    网络 / 超时 / 服务不可用。

    Orchestrator 不做内部重试，由用户再次 complete()。
    """

    code = 'NETWORK_ERROR'
    kind = 'network'
    http_status = 503


class AuthorizationError(RemoteError):
    """登录过期或无权限。401 / 403。"""

    code = 'UNAUTHORIZED'
    kind = 'authorization'
    http_status = 401


class RemoteValidationError(RemoteError):
    """服务端校验失败（本地校验漏掉的情况）。400。"""

    code = 'REMOTE_VALIDATION_ERROR'
    kind = 'validation'
    http_status = 400


class UnconfirmedCreateError(RemoteError):
    """
    服务端返回 2xx 但响应里没有新记录的 id。

    记录很可能已经创建，wizard 不再允许 complete()，由用户到列表页确认。
    """

    code = 'MISSING_REMOTE_ID'
    kind = 'unknown'
    retryable = False
