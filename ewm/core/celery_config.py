from celery import Celery

from ewm.core.config import get_redis_url


def make_celery(app_name: str = "ewm_main_service") -> Celery:
    redis_url = get_redis_url()
    celery = Celery(app_name, broker=redis_url, backend=redis_url, include=["ewm.tasks"])
    celery.conf.task_serializer = "json"
    celery.conf.result_serializer = "json"
    celery.conf.accept_content = ["json"]
    # hits are fire-and-forget, nobody waits for a result
    celery.conf.task_ignore_result = True
    return celery


celery_app = make_celery()
