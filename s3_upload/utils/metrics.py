"""
Prometheus metrics for upload runs.

Tracks request outcomes, bytes sent, durations, and storage errors per
upload method. The tool runs as a short-lived batch job, so metrics live in
a private registry and are pushed to a Pushgateway at the end of a run
instead of being scraped.

Metrics Provided:
    - s3_upload_requests_total: Counter for uploads by method and status
    - s3_upload_bytes_total: Counter for uploaded bytes by method
    - s3_upload_duration_seconds: Histogram for upload latency by method
    - s3_upload_storage_errors_total: Counter for collaborator errors

Usage:
    from s3_upload.utils.metrics import get_metrics

    metrics = get_metrics()
    with metrics.track_upload(method="sdk"):
        result = sdk_upload(request)
    metrics.record_success(method="sdk", bytes_uploaded=result.bytes_uploaded)
    metrics.push("http://pushgateway:9091")
"""

import os
from contextlib import nullcontext
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    push_to_gateway,
)

from s3_upload.utils.logging import get_logger

# Module-level logger
logger = get_logger(__name__)

PUSH_JOB_NAME = "s3-upload"


class UploadMetrics:
    """
    Prometheus collectors for the uploader.

    Example:
        >>> metrics = UploadMetrics()
        >>> metrics.record_success(method="cli", bytes_uploaded=1024)
    """

    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None) -> None:
        """
        Initialize metrics collectors.

        Args:
            enabled: Whether metrics collection is enabled
            registry: Registry to register on (a fresh one if None)
        """
        self.enabled = enabled
        self.registry = registry if registry is not None else CollectorRegistry()

        if not self.enabled:
            logger.debug("Metrics collection disabled")
            return

        self.upload_requests = Counter(
            name="s3_upload_requests_total",
            documentation="Total number of upload requests",
            labelnames=["method", "status"],  # status: success/failure
            registry=self.registry,
        )

        self.upload_bytes = Counter(
            name="s3_upload_bytes_total",
            documentation="Total bytes uploaded to object storage",
            labelnames=["method"],
            registry=self.registry,
        )

        self.upload_duration = Histogram(
            name="s3_upload_duration_seconds",
            documentation="Time spent uploading files",
            labelnames=["method"],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
            registry=self.registry,
        )

        self.storage_errors = Counter(
            name="s3_upload_storage_errors_total",
            documentation="Total storage service and external tool errors",
            labelnames=["action", "error_type"],
            registry=self.registry,
        )

    def track_upload(self, method: str):
        """
        Context manager timing an upload.

        Example:
            >>> with metrics.track_upload(method="sdk"):
            ...     sdk_upload(request)
        """
        if not self.enabled:
            return nullcontext()

        return self.upload_duration.labels(method=method).time()

    def record_success(self, method: str, bytes_uploaded: int = 0) -> None:
        """
        Record successful upload.

        Args:
            method: Upload method used
            bytes_uploaded: Number of bytes uploaded
        """
        if not self.enabled:
            return

        self.upload_requests.labels(method=method, status="success").inc()
        if bytes_uploaded > 0:
            self.upload_bytes.labels(method=method).inc(bytes_uploaded)

    def record_failure(self, method: str) -> None:
        """Record failed upload."""
        if not self.enabled:
            return

        self.upload_requests.labels(method=method, status="failure").inc()

    def record_storage_error(self, action: str, error_type: str) -> None:
        """
        Record a collaborator error.

        Args:
            action: Failed action (find-bucket, get-bucket, upload ...)
            error_type: Underlying exception type name
        """
        if not self.enabled:
            return

        self.storage_errors.labels(action=action, error_type=error_type).inc()

    def push(self, gateway_url: Optional[str]) -> bool:
        """
        Push the registry to a Prometheus Pushgateway.

        Push failures are logged and swallowed; they never fail an upload.

        Args:
            gateway_url: Pushgateway address; nothing is pushed if empty

        Returns:
            True if metrics were pushed
        """
        if not self.enabled or not gateway_url:
            return False

        try:
            push_to_gateway(gateway_url, job=PUSH_JOB_NAME, registry=self.registry)
        except (OSError, ValueError) as e:
            logger.warning(f"Metrics push to {gateway_url} failed: {e}")
            return False

        logger.debug(f"Pushed metrics to {gateway_url}")
        return True


# Global metrics instance (singleton)
_metrics_instance: Optional[UploadMetrics] = None


def get_metrics(enabled: Optional[bool] = None) -> UploadMetrics:
    """
    Get global metrics instance (singleton).

    Args:
        enabled: Used when the instance is first created; falls back to
            METRICS_ENABLED if None

    Returns:
        Global UploadMetrics instance
    """
    global _metrics_instance

    if _metrics_instance is None:
        if enabled is None:
            enabled = os.getenv("METRICS_ENABLED", "true").lower() == "true"
        _metrics_instance = UploadMetrics(enabled=enabled)

    return _metrics_instance
