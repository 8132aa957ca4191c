"""
具体远端实现。

新增实现：在此文件添加一个类，然后在 factory.py 注册即可。

已注册实现：
  HttpSubmitClient     — POST / PUT {API_BASE_URL}/api/{resource}
  HttpSelectionSource  — GET {API_BASE_URL}/api/{entity}
  HttpNotifier         — POST {API_BASE_URL}/api/notifications/email|zalo
  CeleryNotifier       — 投递 Celery 任务，由 worker 带重试地调用 HttpNotifier 同一个接口

所有 HTTP 调用都是阻塞的 requests，用 asyncio.to_thread 放到线程里执行，
不阻塞 wizard 所在的事件循环。
"""

import asyncio
import logging
from typing import Any, Optional

import requests

from ..conf import wizard_setting
from ..error_mapping import classify_remote_error
from ..exceptions import UnconfirmedCreateError
from .base import BaseNotifier, BaseSelectionSource, BaseSubmitClient

logger = logging.getLogger(__name__)


# ── ApiClient ──────────────────────────────────────────────────────────────
#
# 后端统一响应格式：
#   {"success": true,  "data": {...}, "message": "..."}
#   {"success": false, "error": "...", "data": [{"field": ..., "message": ...}]}
# 非 2xx、success=false、网络异常都转成 RemoteError 子类抛出。

class ApiClient:

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or wizard_setting("API_BASE_URL")).rstrip("/")
        self.token = token if token is not None else wizard_setting("API_TOKEN")
        self.timeout = timeout or wizard_setting("API_TIMEOUT")
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        """发送请求，返回响应里的 data 字段。"""
        url = f"{self.base_url}/api/{path.lstrip('/')}"
        try:
            response = self.session.request(
                method, url, json=payload, headers=self._headers(), timeout=self.timeout,
            )
        except requests.Timeout as exc:
            logger.warning("[Remote] %s %s 超时", method, url)
            raise classify_remote_error(None, f"timeout: {exc}") from exc
        except requests.RequestException as exc:
            logger.warning("[Remote] %s %s 网络错误: %s", method, url, exc)
            raise classify_remote_error(None, f"network error: {exc}") from exc

        if response.status_code == 204:
            return None

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if not response.ok or body.get("success") is False:
            message = self._error_message(response, body)
            logger.warning("[Remote] %s %s 失败 status=%d: %s",
                           method, url, response.status_code, message)
            raise classify_remote_error(response.status_code, message)

        return body.get("data")

    @staticmethod
    def _error_message(response: requests.Response, body: dict) -> str:
        message = body.get("error") or body.get("message") or \
            f"Server error: {response.status_code} {response.reason}"
        # 服务端校验错误：data 是 [{"field": ..., "message": ...}]
        details = body.get("data")
        if isinstance(details, list) and details:
            parts = []
            for item in details:
                if isinstance(item, dict):
                    parts.append(f"{item.get('field')}: {item.get('message')}")
                else:
                    parts.append(str(item))
            message = f"{message}: {'; '.join(parts)}"
        return message


# ── HttpSubmitClient ───────────────────────────────────────────────────────
#
# 每个表单一个实例：resource 决定 URL，id_key 决定从响应里取哪个字段当 id。
#   order   → POST /api/orders              → data.orderId
#   specify → POST /api/specify-vote-tests  → data.specifyVoteID

class HttpSubmitClient(BaseSubmitClient):

    def __init__(self, resource: str, id_key: str, api: Optional[ApiClient] = None):
        self.resource = resource
        self.id_key = id_key
        self.api = api or ApiClient()

    async def create(self, payload: dict[str, Any]) -> str:
        data = await asyncio.to_thread(self.api.request, "POST", self.resource, payload)
        remote_id = (data or {}).get(self.id_key)
        if not remote_id:
            logger.error("[Remote] %s 创建成功但响应缺少 %s: %s", self.resource, self.id_key, data)
            raise UnconfirmedCreateError(
                message="Yêu cầu đã được gửi nhưng không nhận được mã. "
                        "Vui lòng kiểm tra lại danh sách trước khi tạo mới.",
                detail={"server_message": f"Response for {self.resource} is missing {self.id_key}",
                        "resource": self.resource},
            )
        return str(remote_id)

    async def update(self, entity_id: str, payload: dict[str, Any]) -> None:
        await asyncio.to_thread(self.api.request, "PUT", f"{self.resource}/{entity_id}", payload)


# ── HttpSelectionSource ────────────────────────────────────────────────────

class HttpSelectionSource(BaseSelectionSource):

    def __init__(self, api: Optional[ApiClient] = None):
        self.api = api or ApiClient()

    async def list_entities(self, entity: str) -> list[dict[str, Any]]:
        data = await asyncio.to_thread(self.api.request, "GET", entity)
        # 分页接口返回 {"content": [...]}，普通接口直接返回列表
        if isinstance(data, dict):
            data = data.get("content", [])
        return list(data or [])


# ── HttpNotifier ───────────────────────────────────────────────────────────

class HttpNotifier(BaseNotifier):

    def __init__(self, api: Optional[ApiClient] = None):
        self.api = api or ApiClient()

    async def send_email(self, target: str, payload: dict[str, Any]) -> None:
        await asyncio.to_thread(self.api.request, "POST", "notifications/email",
                                {"to": target, **payload})

    async def send_message(self, target: str, payload: dict[str, Any]) -> None:
        await asyncio.to_thread(self.api.request, "POST", "notifications/zalo",
                                {"phone": target, **payload})


# ── CeleryNotifier ─────────────────────────────────────────────────────────
#
# 只负责投递任务，真正的发送和重试在 tasks.py。
# delay() 成功即视为通知已派发。

class CeleryNotifier(BaseNotifier):

    async def send_email(self, target: str, payload: dict[str, Any]) -> None:
        from ..tasks import send_patient_email

        result = await asyncio.to_thread(send_patient_email.delay, target, payload)
        logger.info("[Remote] 邮件任务已投递 task_id=%s", result.id)

    async def send_message(self, target: str, payload: dict[str, Any]) -> None:
        from ..tasks import send_patient_zalo

        result = await asyncio.to_thread(send_patient_zalo.delay, target, payload)
        logger.info("[Remote] Zalo 任务已投递 task_id=%s", result.id)
