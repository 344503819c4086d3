"""
Data types shared by the upload strategies.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from s3_upload.errors import ConfigurationError


class UploadMethod(str, Enum):
    """Available upload strategies."""

    CLI = "cli"
    SDK = "sdk"

    @classmethod
    def parse(cls, value: str) -> "UploadMethod":
        """
        Map a flag value to an upload method.

        Raises:
            ConfigurationError: If the value names no known method
        """
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError("method", "Unknown upload method.") from None


@dataclass(frozen=True)
class UploadRequest:
    """
    Everything a strategy needs to upload one file.

    Attributes:
        source_path: Local file to upload
        target_path: Destination object key
        bucket_name: Destination bucket
        endpoint: Storage service endpoint URL
        region: Storage service region
        access_key: Access key ID
        secret_key: Secret access key
        method: Strategy that will run the upload
    """

    source_path: str
    target_path: str
    bucket_name: str
    endpoint: str
    region: str
    access_key: str
    secret_key: str
    method: UploadMethod = UploadMethod.CLI

    @property
    def object_uri(self) -> str:
        return f"s3://{self.bucket_name}/{self.target_path.lstrip('/')}"

    def __repr__(self) -> str:
        # Keep the secret out of logs
        return (
            f"UploadRequest(source_path={self.source_path!r}, "
            f"target_path={self.target_path!r}, bucket_name={self.bucket_name!r}, "
            f"endpoint={self.endpoint!r}, region={self.region!r}, "
            f"method={self.method.value!r})"
        )


@dataclass
class UploadResult:
    """
    Result of a completed upload.

    Attributes:
        method: Strategy that ran
        uri: Destination URI (s3://bucket/key)
        bytes_uploaded: Size of the uploaded file
        duration_seconds: Wall time of the strategy
        bucket_found: Outcome of the SDK existence check (None for the CLI path)
    """

    method: UploadMethod
    uri: str
    bytes_uploaded: int
    duration_seconds: float
    bucket_found: Optional[bool] = None
