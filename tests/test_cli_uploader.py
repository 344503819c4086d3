"""
Unit tests for the CLI-backed uploader.

subprocess.run is patched, so the aws executable is never started.
"""

import logging
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from s3_upload.errors import StorageError
from s3_upload.uploader import (
    AwsCliBucket,
    AwsCliClient,
    UploadMethod,
    UploadRequest,
    cli_upload,
)
from s3_upload.utils.config import UploaderSettings

RUN = "s3_upload.uploader.cli_uploader.subprocess.run"

NOT_FOUND = "An error occurred (404) when calling the HeadBucket operation: Not Found"
FORBIDDEN = "An error occurred (403) when calling the HeadBucket operation: Forbidden"


def _proc(returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["aws"], returncode=returncode, stdout="", stderr=stderr)


def _client() -> AwsCliClient:
    return AwsCliClient(
        endpoint="http://localhost:9000",
        access_key="access",
        secret_key="secret",
        region="us-east-1",
    )


def _request(**overrides) -> UploadRequest:
    values = dict(
        source_path="/tmp/dump.rdb",
        target_path="backups/dump.rdb",
        bucket_name="backups",
        endpoint="http://localhost:9000",
        region="us-east-1",
        access_key="access",
        secret_key="secret",
        method=UploadMethod.CLI,
    )
    values.update(overrides)
    return UploadRequest(**values)



@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "dump.rdb"
    path.write_bytes(b"REDIS0009" * 10)
    return path


class TestAwsCliClient:
    """Test the aws executable wrapper."""

    def test_existing_bucket(self):
        with patch(RUN, return_value=_proc()) as mock_run:
            bucket = _client().get_or_create_bucket("backups")

        assert isinstance(bucket, AwsCliBucket)
        assert bucket.name == "backups"
        command = mock_run.call_args.args[0]
        assert command == [
            "aws", "s3api", "head-bucket", "--bucket", "backups",
            "--endpoint-url", "http://localhost:9000",
            "--region", "us-east-1",
        ]

    def test_credentials_passed_through_environment(self):
        """Test that keys go into the child env and not the argv."""
        with patch(RUN, return_value=_proc()) as mock_run:
            _client().get_or_create_bucket("backups")

        command = mock_run.call_args.args[0]
        env = mock_run.call_args.kwargs["env"]
        assert "secret" not in command
        assert env["AWS_ACCESS_KEY_ID"] == "access"
        assert env["AWS_SECRET_ACCESS_KEY"] == "secret"
        assert env["AWS_DEFAULT_REGION"] == "us-east-1"

    def test_missing_bucket_is_created(self):
        """Test that a 404 on head-bucket triggers create-bucket."""
        with patch(RUN, side_effect=[_proc(255, NOT_FOUND), _proc()]) as mock_run:
            bucket = _client().get_or_create_bucket("backups")

        assert bucket.name == "backups"
        assert mock_run.call_count == 2
        assert mock_run.call_args_list[1].args[0][:4] == ["aws", "s3api", "create-bucket", "--bucket"]

    def test_head_failure_is_an_error(self):
        with patch(RUN, return_value=_proc(255, FORBIDDEN)) as mock_run:
            with pytest.raises(StorageError, match="Forbidden") as exc:
                _client().get_or_create_bucket("backups")

        assert exc.value.action == "get-bucket"
        assert mock_run.call_count == 1

    def test_create_in_other_region_sends_location_constraint(self):
        """Test that buckets outside us-east-1 are created with a LocationConstraint."""
        client = AwsCliClient("http://localhost:9000", "access", "secret", region="eu-west-1")

        with patch(RUN, side_effect=[_proc(255, NOT_FOUND), _proc()]) as mock_run:
            client.get_or_create_bucket("backups")

        command = mock_run.call_args_list[1].args[0]
        assert command[:6] == [
            "aws", "s3api", "create-bucket", "--bucket", "backups",
            "--create-bucket-configuration",
        ]
        assert command[6] == "LocationConstraint=eu-west-1"

    def test_create_in_us_east_1_omits_location_constraint(self):
        with patch(RUN, side_effect=[_proc(255, NOT_FOUND), _proc()]) as mock_run:
            _client().get_or_create_bucket("backups")

        assert "--create-bucket-configuration" not in mock_run.call_args_list[1].args[0]

    def test_create_without_region_omits_location_constraint(self):
        client = AwsCliClient("http://localhost:9000", "access", "secret")

        with patch(RUN, side_effect=[_proc(255, NOT_FOUND), _proc()]) as mock_run:
            client.get_or_create_bucket("backups")

        assert "--create-bucket-configuration" not in mock_run.call_args_list[1].args[0]

    def test_create_failure_is_an_error(self):
        with patch(RUN, side_effect=[_proc(255, NOT_FOUND), _proc(255, "BucketAlreadyExists")]):
            with pytest.raises(StorageError, match="BucketAlreadyExists"):
                _client().get_or_create_bucket("backups")

    def test_missing_executable(self):
        client = AwsCliClient("http://localhost:9000", "access", "secret", executable="/nope/aws")

        with patch(RUN, side_effect=FileNotFoundError("/nope/aws")):
            with pytest.raises(StorageError, match="Command not found: /nope/aws") as exc:
                client.get_or_create_bucket("backups")

        assert isinstance(exc.value.cause, FileNotFoundError)

    def test_no_region_flag_without_region(self):
        client = AwsCliClient("http://localhost:9000", "access", "secret")

        with patch(RUN, return_value=_proc()) as mock_run:
            client.get_or_create_bucket("backups")

        assert "--region" not in mock_run.call_args.args[0]


class TestAwsCliBucket:
    """Test the bucket handle."""

    def test_upload_copies_to_bucket_uri(self):
        bucket = AwsCliBucket(_client(), "backups")

        with patch(RUN, return_value=_proc()) as mock_run:
            bucket.upload("/tmp/dump.rdb", "/nightly/dump.rdb")

        command = mock_run.call_args.args[0]
        assert command[:3] == ["aws", "s3", "cp"]
        assert "/tmp/dump.rdb" in command
        assert "s3://backups/nightly/dump.rdb" in command

    def test_upload_failure(self):
        bucket = AwsCliBucket(_client(), "backups")

        with patch(RUN, return_value=_proc(1, "upload failed: access denied")):
            with pytest.raises(StorageError, match="access denied") as exc:
                bucket.upload("/tmp/dump.rdb", "dump.rdb")

        assert exc.value.action == "upload"

    def test_failure_without_stderr_reports_status(self):
        bucket = AwsCliBucket(_client(), "backups")

        with patch(RUN, return_value=_proc(2)):
            with pytest.raises(StorageError, match="exited with status 2"):
                bucket.upload("/tmp/dump.rdb", "dump.rdb")


class TestCliUpload:
    """Test the full CLI strategy against a mocked wrapper."""

    def test_calls_in_order_and_logs_events(self, caplog, source_file):
        """Test get_or_create_bucket runs before upload, with four events."""
        caplog.set_level(logging.INFO)
        calls = []
        client = MagicMock()
        bucket = client.get_or_create_bucket.return_value
        bucket.uri.return_value = "s3://backups/backups/dump.rdb"
        client.get_or_create_bucket.side_effect = lambda name: calls.append(("get", name)) or bucket
        bucket.upload.side_effect = lambda src, dst: calls.append(("upload", src, dst))

        result = cli_upload(_request(source_path=str(source_file)), client=client)

        assert calls == [
            ("get", "backups"),
            ("upload", str(source_file), "backups/dump.rdb"),
        ]
        events = [
            f"{r.action}:{r.data['event']}"
            for r in caplog.records
            if r.levelno == logging.INFO and hasattr(r, "action")
        ]
        assert events == ["get-bucket:starting", "get-bucket:done", "upload:starting", "upload:done"]
        assert result.method is UploadMethod.CLI
        assert result.uri == "s3://backups/backups/dump.rdb"
        assert result.bytes_uploaded == source_file.stat().st_size

    def test_bucket_failure_skips_upload(self, source_file):
        client = MagicMock()
        client.get_or_create_bucket.side_effect = StorageError("get-bucket", "denied")

        with pytest.raises(StorageError, match="denied"):
            cli_upload(_request(source_path=str(source_file)), client=client)

        client.get_or_create_bucket.return_value.upload.assert_not_called()

    def test_upload_failure(self, source_file):
        client = MagicMock()
        client.get_or_create_bucket.return_value.upload.side_effect = StorageError("upload", "boom")

        with pytest.raises(StorageError) as exc:
            cli_upload(_request(source_path=str(source_file)), client=client)

        assert exc.value.action == "upload"

    def test_unreadable_source_stops_before_bucket(self, tmp_path):
        """Test that a missing source file fails before any aws command runs."""
        client = MagicMock()
        request = _request(source_path=str(tmp_path / "missing.rdb"))

        with pytest.raises(StorageError) as exc:
            cli_upload(request, client=client)

        assert exc.value.action == "open-file"
        assert isinstance(exc.value.cause, FileNotFoundError)
        client.get_or_create_bucket.assert_not_called()

    def test_builds_wrapper_from_request_and_settings(self, tmp_path):
        """Test the wrapper gets endpoint, keys, region and executable."""
        source = tmp_path / "dump.rdb"
        source.write_bytes(b"x" * 42)
        settings = UploaderSettings(aws_cli_path="/opt/aws")

        with patch(RUN, return_value=_proc()) as mock_run:
            result = cli_upload(_request(source_path=str(source)), settings=settings)

        assert mock_run.call_count == 2
        assert all(call.args[0][0] == "/opt/aws" for call in mock_run.call_args_list)
        assert result.bytes_uploaded == 42
