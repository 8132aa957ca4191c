"""
工厂函数：根据 settings.LABWIZARD 返回远端实现。

新增通知方式只需：
  1. 在 clients.py 新建 XxxNotifier(BaseNotifier) 类
  2. 在此处 _build_notifier_registry() 加一行
  不需要修改 submission.py 或任何业务代码。
"""

from ..conf import wizard_setting
from ..schema.base import BaseFormSchema
from .base import BaseNotifier, BaseSelectionSource, BaseSubmitClient


def _build_notifier_registry() -> dict[str, type[BaseNotifier]]:
    # 延迟导入，避免在 Django 启动前触发 Celery app 加载
    from .clients import CeleryNotifier, HttpNotifier

    return {
        "http":   HttpNotifier,
        "celery": CeleryNotifier,
    }


def get_notifier() -> BaseNotifier:
    """
    从 settings.LABWIZARD["NOTIFIER"] 读取通知方式，返回对应实例。

    由环境变量 LABWIZARD_NOTIFIER 控制（默认 "http"）。

    Raises:
        ValueError: NOTIFIER 未知
    """
    kind = wizard_setting("NOTIFIER")
    registry = _build_notifier_registry()
    notifier_cls = registry.get(kind)

    if notifier_cls is None:
        raise ValueError(
            f"Unknown LABWIZARD NOTIFIER: {kind!r}. "
            f"Known notifiers: {list(registry.keys())}"
        )

    return notifier_cls()


def get_submit_client(schema: BaseFormSchema) -> BaseSubmitClient:
    from .clients import HttpSubmitClient

    return HttpSubmitClient(resource=schema.resource, id_key=schema.id_key)


def get_selection_source() -> BaseSelectionSource:
    from .clients import HttpSelectionSource

    return HttpSelectionSource()
