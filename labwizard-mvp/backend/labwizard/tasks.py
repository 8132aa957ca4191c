import logging

from celery import shared_task

from .exceptions import RemoteError

logger = logging.getLogger(__name__)


def _send_with_retry(task, channel: str, path: str, body: dict):
    """
    同步调用通知接口；失败按指数退避重试。

    重试策略：
      - 最多重试 3 次
      - 指数退避：10s → 20s → 40s
      - 超出次数后放弃（通知只是附加动作，订单本身已经提交成功）
    """
    from .remote.clients import ApiClient

    logger.info("[Celery][%s] 开始发送 (attempt %d/%d)",
                channel, task.request.retries + 1, task.max_retries + 1)
    try:
        ApiClient().request("POST", path, body)
    except RemoteError as exc:
        logger.warning("[Celery][%s] 发送失败 (attempt %d): %s",
                       channel, task.request.retries + 1, exc.message)

        if exc.kind != "network":
            # 只重试网络类错误
            logger.error("[Celery][%s] kind=%s，不重试", channel, exc.kind)
            return False

        if task.request.retries < task.max_retries:
            # 指数退避：countdown = 10 * 2^retries → 10s, 20s, 40s
            countdown = task.default_retry_delay * (2 ** task.request.retries)
            logger.info("[Celery][%s] 将在 %ds 后重试 (第 %d 次)...",
                        channel, countdown, task.request.retries + 1)
            raise task.retry(exc=exc, countdown=countdown)

        logger.error("[Celery][%s] 已达最大重试次数，放弃", channel)
        return False

    logger.info("[Celery][%s] 发送完成", channel)
    return True


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=10,   # 初始重试延迟（秒），指数退避会乘以 2^retry_count
    acks_late=True,           # 任务执行完才 ack，防止 worker 崩溃时任务丢失
    reject_on_worker_lost=True,
)
def send_patient_email(self, target: str, payload: dict):
    """提交成功后给病人发邮件。"""
    return _send_with_retry(self, "email", "notifications/email", {"to": target, **payload})


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=10,
    acks_late=True,
    reject_on_worker_lost=True,
)
def send_patient_zalo(self, target: str, payload: dict):
    """提交成功后给病人发 Zalo 消息。"""
    return _send_with_retry(self, "zalo", "notifications/zalo", {"phone": target, **payload})
