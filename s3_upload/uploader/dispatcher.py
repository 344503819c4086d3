"""
Upload dispatcher.

Maps an upload method to its strategy and runs it with metrics around the
call. Every strategy takes an ``UploadRequest`` and returns an
``UploadResult`` or raises ``UploadError``.
"""

from typing import Callable, Dict, Optional, Union

from s3_upload.errors import StorageError, UploadError
from s3_upload.uploader.cli_uploader import cli_upload
from s3_upload.uploader.models import UploadMethod, UploadRequest, UploadResult
from s3_upload.uploader.sdk_uploader import sdk_upload
from s3_upload.utils.logging import get_logger
from s3_upload.utils.metrics import UploadMetrics, get_metrics

# Module logger
logger = get_logger(__name__)

UploadStrategy = Callable[[UploadRequest], UploadResult]

STRATEGIES: Dict[UploadMethod, UploadStrategy] = {
    UploadMethod.CLI: cli_upload,
    UploadMethod.SDK: sdk_upload,
}


def resolve_strategy(method: Union[str, UploadMethod]) -> UploadStrategy:
    """
    Look up the strategy for an upload method.

    Raises:
        ConfigurationError: If the method is unknown
    """
    if not isinstance(method, UploadMethod):
        method = UploadMethod.parse(method)
    return STRATEGIES[method]


def upload(request: UploadRequest, metrics: Optional[UploadMetrics] = None) -> UploadResult:
    """
    Run the strategy selected by ``request.method``.

    Args:
        request: Upload request
        metrics: Metrics collectors (global instance if None)

    Returns:
        UploadResult from the strategy

    Raises:
        UploadError: Propagated unchanged from the strategy
    """
    metrics = metrics if metrics is not None else get_metrics()
    strategy = resolve_strategy(request.method)
    method = request.method.value

    logger.debug(f"Dispatching {request!r} via {method} strategy")

    try:
        with metrics.track_upload(method=method):
            result = strategy(request)
    except UploadError as e:
        metrics.record_failure(method=method)
        if isinstance(e, StorageError):
            metrics.record_storage_error(action=e.action, error_type=e.error_type)
        raise

    metrics.record_success(method=method, bytes_uploaded=result.bytes_uploaded)
    return result
