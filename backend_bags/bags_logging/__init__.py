"""
Structured logging for Backend Bags.

JSON logs with timestamp, event_type and logger name.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_bags.bags_logging.logger import get_logger, mask_url

__all__ = ["get_logger", "mask_url"]
