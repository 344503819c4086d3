"""
SDK-backed uploader.

Talks to the storage service directly through boto3: checks whether the
destination bucket exists, then streams the source file through the
managed transfer, which splits large payloads into multipart uploads.

Example usage:
    >>> from s3_upload.uploader import UploadRequest, UploadMethod, sdk_upload
    >>> request = UploadRequest(
    ...     source_path="./backup.rdb",
    ...     target_path="backups/backup.rdb",
    ...     bucket_name="redis-backups",
    ...     endpoint="https://s3.eu-west-1.amazonaws.com",
    ...     region="eu-west-1",
    ...     access_key="AKIA...",
    ...     secret_key="...",
    ...     method=UploadMethod.SDK,
    ... )
    >>> result = sdk_upload(request)
"""

import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from boto3.exceptions import Boto3Error
from boto3.s3.transfer import TransferConfig
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3_upload.errors import StorageError
from s3_upload.uploader.models import UploadRequest, UploadResult, UploadMethod
from s3_upload.utils.config import UploaderSettings, get_settings
from s3_upload.utils.logging import get_logger, log_event, log_function_call

# Module logger
logger = get_logger(__name__)

OBJECT_ACL = "private"

_NOT_FOUND_CODES = {"404", "NoSuchBucket", "NotFound"}


@dataclass(frozen=True)
class BucketGrants:
    """Grant headers sent when creating a bucket."""

    full_control: str
    read: str
    read_acp: str
    write: str
    write_acp: str
    acl: str = OBJECT_ACL

    def as_params(self) -> Dict[str, str]:
        return {
            "ACL": self.acl,
            "GrantFullControl": self.full_control,
            "GrantRead": self.read,
            "GrantReadACP": self.read_acp,
            "GrantWrite": self.write,
            "GrantWriteACP": self.write_acp,
        }


DEFAULT_BUCKET_GRANTS = BucketGrants(
    full_control="GrantFullControl",
    read="GrantRead",
    read_acp="GrantReadACP",
    write="GrantWrite",
    write_acp="GrantWriteACP",
)


def build_client(request: UploadRequest) -> Any:
    """
    Create an S3 client with static credentials for the request's endpoint.

    Args:
        request: Upload request carrying endpoint, region and credentials

    Returns:
        boto3 S3 client
    """
    return boto3.client(
        "s3",
        endpoint_url=request.endpoint,
        region_name=request.region,
        aws_access_key_id=request.access_key,
        aws_secret_access_key=request.secret_key,
        config=Config(signature_version="s3v4"),
    )


def build_transfer_config(settings: UploaderSettings) -> TransferConfig:
    """Managed upload settings; runs on the calling thread."""
    return TransferConfig(
        multipart_threshold=settings.multipart_threshold_bytes,
        multipart_chunksize=settings.multipart_chunksize_bytes,
        max_concurrency=1,
        use_threads=False,
    )


def _is_not_found(error: ClientError) -> bool:
    response = error.response or {}
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    code = str(response.get("Error", {}).get("Code", ""))
    return status == 404 or code in _NOT_FOUND_CODES


@log_function_call
def bucket_exists(client: Any, bucket_name: str) -> bool:
    """
    Check whether a bucket exists with a HEAD request.

    A 404 response means the bucket is missing and is not an error.

    Args:
        client: boto3 S3 client
        bucket_name: Bucket to look for

    Returns:
        True if the bucket exists, False if the service answered 404

    Raises:
        StorageError: For any other failure (403, connection errors ...)
    """
    try:
        client.head_bucket(Bucket=bucket_name)
    except ClientError as e:
        if _is_not_found(e):
            return False
        raise StorageError("find-bucket", str(e), cause=e) from e
    except BotoCoreError as e:
        raise StorageError("find-bucket", str(e), cause=e) from e

    return True


@log_function_call
def create_bucket(
    client: Any,
    bucket_name: str,
    grants: BucketGrants = DEFAULT_BUCKET_GRANTS,
) -> Dict[str, Any]:
    """
    Create a bucket with a private ACL and the given grant set.

    No location constraint is sent. Errors from the service propagate to
    the caller unchanged.

    Args:
        client: boto3 S3 client
        bucket_name: Bucket to create
        grants: Grant headers to send

    Returns:
        The service response
    """
    response = client.create_bucket(
        Bucket=bucket_name,
        **grants.as_params(),
    )

    print(response)

    return response


def sdk_upload(
    request: UploadRequest,
    client: Optional[Any] = None,
    settings: Optional[UploaderSettings] = None,
) -> UploadResult:
    """
    Upload a file through the storage SDK.

    Steps:
        1. HEAD the bucket and log whether it was found. The result does not
           change what happens next.
        2. Open the source file.
        3. Stream it through the managed uploader with a private ACL.

    Args:
        request: Upload request
        client: Pre-built S3 client (built from the request if None)
        settings: Runtime settings (global settings if None)

    Returns:
        UploadResult describing the upload

    Raises:
        StorageError: If the existence check, file open, or upload fails
    """
    settings = settings if settings is not None else get_settings()
    start_time = time.time()

    log_event(logger, "sdk-upload", "starting")

    client = client if client is not None else build_client(request)

    log_event(logger, "find-bucket", "starting")

    found = bucket_exists(client, request.bucket_name)
    log_event(logger, "find-bucket", "found" if found else "not-found")

    log_event(logger, "find-bucket", "done")

    try:
        source = open(request.source_path, "rb")
    except OSError as e:
        raise StorageError("open-file", str(e), cause=e) from e

    with source:
        size = os.fstat(source.fileno()).st_size

        log_event(logger, "upload", "starting")

        try:
            client.upload_fileobj(
                source,
                request.bucket_name,
                request.target_path,
                ExtraArgs={"ACL": OBJECT_ACL},
                Config=build_transfer_config(settings),
            )
        except (ClientError, BotoCoreError, Boto3Error) as e:
            raise StorageError("upload", str(e), cause=e) from e

        log_event(logger, "upload", "done")

    log_event(logger, "sdk-upload", "done")

    return UploadResult(
        method=UploadMethod.SDK,
        uri=request.object_uri,
        bytes_uploaded=size,
        duration_seconds=time.time() - start_time,
        bucket_found=found,
    )
