# apps/catalog/performance.py
from functools import wraps
import time
import logging

logger = logging.getLogger(__name__)

SLOW_QUERY_SECONDS = 0.5


def monitor_query_performance(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.monotonic()
        result = func(*args, **kwargs)
        execution_time = time.monotonic() - start_time

        if execution_time > SLOW_QUERY_SECONDS:
            logger.warning(f"Slow catalog read: {func.__name__} took {execution_time:.2f}s")

        return result
    return wrapper
