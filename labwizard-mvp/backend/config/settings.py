import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
DEBUG = os.getenv('DEBUG', '0') == '1'
ALLOWED_HOSTS = ['*']

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'labwizard',
]

# Wizard 不落库：draft 只活在 controller 里，提交走远端 API
DATABASES = {}

USE_TZ = True
TIME_ZONE = 'Asia/Ho_Chi_Minh'

# Lab wizard
LABWIZARD = {
    'API_BASE_URL': os.getenv('LABWIZARD_API_BASE_URL', 'http://localhost:8080'),
    'API_TOKEN': os.getenv('LABWIZARD_API_TOKEN', ''),
    # 单次远端请求超时（秒）
    'API_TIMEOUT': float(os.getenv('LABWIZARD_API_TIMEOUT', '15')),
    # "http" 直接调用通知接口；"celery" 投递到 worker，带重试
    'NOTIFIER': os.getenv('LABWIZARD_NOTIFIER', 'http'),
    # 订单通知总开关；关闭后邮件 / Zalo 开关全部失效
    'NOTIFICATIONS_ENABLED': os.getenv('ENABLE_ORDER_NOTIFICATIONS', 'true').lower() == 'true',
}

# Celery
CELERY_BROKER_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = 'UTC'
# 通知任务执行超时：2 分钟
CELERY_TASK_SOFT_TIME_LIMIT = 120
# 通知任务单独一个队列，worker: celery -A config worker -Q notifications
CELERY_TASK_ROUTES = {
    'labwizard.tasks.send_patient_*': {'queue': 'notifications'},
}

# Logging
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'labwizard': {
            'handlers': ['console'],
            'level': os.getenv('LABWIZARD_LOG_LEVEL', 'INFO'),
            'propagate': True,
        },
    },
}
