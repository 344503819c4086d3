"""
CLI-backed uploader.

Delegates bucket lookup/creation and the object copy to the external
``aws`` command-line tool. Credentials reach the child process through its
environment, never through its argument list.

Example usage:
    >>> client = AwsCliClient(
    ...     endpoint="http://localhost:9000",
    ...     access_key="minioadmin",
    ...     secret_key="minioadmin",
    ...     region="us-east-1",
    ... )
    >>> bucket = client.get_or_create_bucket("backups")
    >>> bucket.upload("./dump.rdb", "nightly/dump.rdb")
"""

import os
import subprocess
import time
from typing import Dict, List, Optional

from s3_upload.errors import StorageError
from s3_upload.uploader.models import UploadRequest, UploadResult, UploadMethod
from s3_upload.utils.config import (
    ACCESS_KEY_ENV,
    SECRET_KEY_ENV,
    UploaderSettings,
    get_settings,
)
from s3_upload.utils.logging import get_logger, log_event, log_function_call

# Module logger
logger = get_logger(__name__)

# Markers in head-bucket stderr meaning the bucket is missing
_NOT_FOUND_MARKERS = ("(404)", "Not Found", "NoSuchBucket")

# Region where S3 rejects an explicit LocationConstraint
DEFAULT_REGION = "us-east-1"


class AwsCliClient:
    """
    Thin wrapper around the ``aws`` executable for one endpoint.

    Args:
        endpoint: Storage service endpoint URL
        access_key: Access key ID
        secret_key: Secret access key
        region: Region passed to the tool (optional)
        executable: Path or name of the aws executable
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        region: Optional[str] = None,
        executable: str = "aws",
    ) -> None:
        self.endpoint = endpoint
        self.region = region
        self.executable = executable
        self._access_key = access_key
        self._secret_key = secret_key

    def _env(self) -> Dict[str, str]:
        env = dict(os.environ)
        env[ACCESS_KEY_ENV] = self._access_key
        env[SECRET_KEY_ENV] = self._secret_key
        if self.region:
            env["AWS_DEFAULT_REGION"] = self.region
        return env

    def _command(self, *args: str) -> List[str]:
        command = [self.executable, *args, "--endpoint-url", self.endpoint]
        if self.region:
            command += ["--region", self.region]
        return command

    def run(self, action: str, *args: str) -> subprocess.CompletedProcess:
        """
        Run one aws command and return the completed process.

        Args:
            action: Action name used if the executable cannot be started
            *args: Arguments after the executable name

        Raises:
            StorageError: If the executable is missing or cannot be run
        """
        command = self._command(*args)
        logger.debug(f"Running: {' '.join(command)}")

        try:
            return subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=self._env(),
            )
        except FileNotFoundError as e:
            raise StorageError(
                action, f"Command not found: {self.executable}", cause=e
            ) from e
        except OSError as e:
            raise StorageError(action, str(e), cause=e) from e

    @log_function_call
    def get_or_create_bucket(self, name: str) -> "AwsCliBucket":
        """
        Return a handle to the named bucket, creating it if missing.

        Raises:
            StorageError: If the lookup fails for a reason other than 404,
                or the creation fails
        """
        proc = self.run("get-bucket", "s3api", "head-bucket", "--bucket", name)
        if proc.returncode == 0:
            return AwsCliBucket(self, name)

        stderr = (proc.stderr or "").strip()
        if not any(marker in stderr for marker in _NOT_FOUND_MARKERS):
            raise StorageError("get-bucket", _failure_message(proc))

        logger.debug(f"Bucket {name} not found, creating it")
        args = ["s3api", "create-bucket", "--bucket", name]
        if self.region and self.region != DEFAULT_REGION:
            args += [
                "--create-bucket-configuration",
                f"LocationConstraint={self.region}",
            ]
        proc = self.run("get-bucket", *args)
        if proc.returncode != 0:
            raise StorageError("get-bucket", _failure_message(proc))

        return AwsCliBucket(self, name)


class AwsCliBucket:
    """Handle to a bucket reached through the aws executable."""

    def __init__(self, client: AwsCliClient, name: str) -> None:
        self.client = client
        self.name = name

    def uri(self, target_path: str) -> str:
        return f"s3://{self.name}/{target_path.lstrip('/')}"

    @log_function_call
    def upload(self, source_path: str, target_path: str) -> None:
        """
        Copy a local file into the bucket.

        Raises:
            StorageError: If the copy fails
        """
        proc = self.client.run(
            "upload", "s3", "cp", "--only-show-errors", source_path, self.uri(target_path)
        )
        if proc.returncode != 0:
            raise StorageError("upload", _failure_message(proc))


def _failure_message(proc: subprocess.CompletedProcess) -> str:
    stderr = (proc.stderr or "").strip()
    if stderr:
        return stderr
    return f"{proc.args[0]} exited with status {proc.returncode}"


def cli_upload(
    request: UploadRequest,
    client: Optional[AwsCliClient] = None,
    settings: Optional[UploaderSettings] = None,
) -> UploadResult:
    """
    Upload a file through the external aws tool.

    Checks the source file is readable, gets or creates the bucket, then
    copies the file into it.

    Args:
        request: Upload request
        client: Pre-built tool wrapper (built from the request if None)
        settings: Runtime settings (global settings if None)

    Returns:
        UploadResult describing the upload

    Raises:
        StorageError: If the source cannot be read or either step fails
    """
    start_time = time.time()

    try:
        size = os.path.getsize(request.source_path)
    except OSError as e:
        raise StorageError("open-file", str(e), cause=e) from e

    if client is None:
        settings = settings if settings is not None else get_settings()
        client = AwsCliClient(
            endpoint=request.endpoint,
            access_key=request.access_key,
            secret_key=request.secret_key,
            region=request.region,
            executable=settings.aws_cli_path,
        )

    log_event(logger, "get-bucket", "starting")

    bucket = client.get_or_create_bucket(request.bucket_name)

    log_event(logger, "get-bucket", "done")

    log_event(logger, "upload", "starting")

    bucket.upload(request.source_path, request.target_path)

    log_event(logger, "upload", "done")

    return UploadResult(
        method=UploadMethod.CLI,
        uri=bucket.uri(request.target_path),
        bytes_uploaded=size,
        duration_seconds=time.time() - start_time,
    )
