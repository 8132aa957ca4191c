"""
远端协作方的抽象基类。

Wizard 只通过这三个接口和外界打交道：
  BaseSelectionSource  — 下拉选项（客户 / 医生 / barcode / genome test ...）
  BaseSubmitClient     — create / update，每次 complete() 恰好调用一次
  BaseNotifier         — 提交成功后的邮件 / Zalo 通知

新实现只需继承对应基类，然后在 factory.py 注册一行。
Controller / Orchestrator 不知道背后是 HTTP、Celery 还是测试里的 mock。
"""

from abc import ABC, abstractmethod
from typing import Any


class BaseSelectionSource(ABC):

    @abstractmethod
    async def list_entities(self, entity: str) -> list[dict[str, Any]]:
        """
        返回某类实体的全部候选项。

        Args:
            entity: 实体名，对应 FieldDescriptor.options_source（"doctors" / "barcodes" ...）

        Raises:
            RemoteError: 拉取失败
        """


class BaseSubmitClient(ABC):

    @abstractmethod
    async def create(self, payload: dict[str, Any]) -> str:
        """
        新建实体，返回远端分配的 id。

        Raises:
            RemoteError: 子类表示失败原因（reference / duplicate / network ...）
        """

    @abstractmethod
    async def update(self, entity_id: str, payload: dict[str, Any]) -> None:
        """
        更新已有实体。失败语义同 create()。
        """


class BaseNotifier(ABC):

    @abstractmethod
    async def send_email(self, target: str, payload: dict[str, Any]) -> None:
        """发送邮件。target 为邮箱地址。失败直接抛异常，由 Orchestrator 记录。"""

    @abstractmethod
    async def send_message(self, target: str, payload: dict[str, Any]) -> None:
        """发送 Zalo 消息。target 为手机号。"""
