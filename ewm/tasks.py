import logging
from typing import Optional

from ewm.clients.stats import get_stats_client
from ewm.core.celery_config import celery_app
from ewm.core.errors import UpstreamUnavailable
from ewm.schemas.common import parse_date

logger = logging.getLogger(__name__)


@celery_app.task(bind=True)
def record_hit_task(self, uri: str, ip: str, timestamp: Optional[str] = None) -> bool:
    """Report one endpoint hit to the statistics collector.

    Runs after the response was sent; a failed report is logged and dropped.
    """
    try:
        get_stats_client().hit(uri, ip, parse_date(timestamp) if timestamp else None)
    except UpstreamUnavailable as e:
        logger.warning("Hit for %s from %s was not recorded (task %s): %s", uri, ip, self.request.id, e)
        return False
    return True
