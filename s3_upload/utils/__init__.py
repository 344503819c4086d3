"""
Utility modules for s3-upload.

This package provides shared utilities used by the uploader:
- logging: Structured action/event logging
- config: Settings and credential loading
- metrics: Prometheus collectors pushed at the end of a run
"""

from s3_upload.utils.logging import get_logger, log_event, log_error, log_function_call

__all__ = ["get_logger", "log_event", "log_error", "log_function_call"]
