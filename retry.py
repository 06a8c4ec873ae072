# retry.py - إعادة المحاولة مع تأخير متزايد

import logging
import time

logger = logging.getLogger(__name__)


def linear_backoff(base_delay=1.0):
    """تأخير يزداد خطياً: base_delay * رقم المحاولة"""
    def backoff(attempt):
        return base_delay * attempt
    return backoff


def retry(operation, max_attempts=3, backoff=None, retry_on=(Exception,), sleep=time.sleep):
    """تنفيذ operation حتى تنجح أو تنفد المحاولات، ثم إعادة رفع آخر خطأ

    الأخطاء التي ليست من retry_on ترفع فوراً دون محاولة جديدة.
    """
    if max_attempts < 1:
        raise ValueError('max_attempts must be at least 1')
    backoff = backoff or linear_backoff(1.0)

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except retry_on as e:
            if attempt == max_attempts:
                logger.error('Attempt %d/%d failed, giving up: %s', attempt, max_attempts, e)
                raise
            delay = backoff(attempt)
            logger.warning('Attempt %d/%d failed: %s (retrying in %.1fs)', attempt, max_attempts, e, delay)
            sleep(delay)
