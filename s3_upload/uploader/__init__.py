"""
Object storage uploader module.

Provides the two upload strategies (external ``aws`` tool and boto3 SDK),
the request/result types they share, and the dispatcher that selects one
by method name.
"""

from .models import UploadMethod, UploadRequest, UploadResult
from .cli_uploader import AwsCliBucket, AwsCliClient, cli_upload
from .sdk_uploader import (
    BucketGrants,
    DEFAULT_BUCKET_GRANTS,
    bucket_exists,
    create_bucket,
    sdk_upload,
)
from .dispatcher import STRATEGIES, resolve_strategy, upload

__all__ = [
    "UploadMethod",
    "UploadRequest",
    "UploadResult",
    "AwsCliBucket",
    "AwsCliClient",
    "cli_upload",
    "BucketGrants",
    "DEFAULT_BUCKET_GRANTS",
    "bucket_exists",
    "create_bucket",
    "sdk_upload",
    "STRATEGIES",
    "resolve_strategy",
    "upload",
]
