"""
读取 settings.LABWIZARD，缺省值集中在这里。

settings.LABWIZARD 由环境变量控制（见 config/settings.py），
测试里用 pytest-django 的 settings fixture 覆盖。
"""

from django.conf import settings

DEFAULTS = {
    "API_BASE_URL": "http://localhost:8080",
    "API_TOKEN": "",
    "API_TIMEOUT": 15,
    "NOTIFIER": "http",
    "NOTIFICATIONS_ENABLED": True,
}


def wizard_setting(key: str):
    return getattr(settings, "LABWIZARD", {}).get(key, DEFAULTS[key])
