"""
Upload a file to an S3-compatible bucket.

Command-line entry point. Parses flags, resolves credentials from the
environment, and runs the selected upload strategy. Every failure surfaces
here as an ``UploadError``; it is logged, its message printed, and the
process exits with status 1.

Usage:
    s3-upload -source dump.rdb -target backups/dump.rdb -bucket backups \\
        -endpoint https://s3.amazonaws.com -region us-east-1
    s3-upload -method sdk -source dump.rdb -target dump.rdb -bucket backups \\
        -endpoint http://localhost:9000 -region us-east-1
"""

import argparse
import sys
from typing import List, Optional

from s3_upload.errors import UploadError
from s3_upload.uploader import UploadMethod, UploadRequest, upload
from s3_upload.utils.config import get_settings, resolve_credentials
from s3_upload.utils.logging import get_logger, log_error, setup_logging
from s3_upload.utils.metrics import get_metrics

logger = get_logger("s3_upload")

REQUIRED_FLAGS = ("source", "target", "bucket", "endpoint", "region")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="s3-upload",
        description="Upload a file to an S3-compatible bucket",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  AWS_ACCESS_KEY_ID      Access key (required)
  AWS_SECRET_ACCESS_KEY  Secret key (required)

Examples:
  # Upload through the aws command-line tool
  %(prog)s -source dump.rdb -target backups/dump.rdb -bucket backups \\
      -endpoint https://s3.amazonaws.com -region us-east-1

  # Upload through the SDK
  %(prog)s -method sdk -source dump.rdb -target dump.rdb -bucket backups \\
      -endpoint http://localhost:9000 -region us-east-1
        """,
    )

    parser.add_argument(
        "-method",
        "--method",
        default=UploadMethod.CLI.value,
        help="Upload method. [cli|sdk] (default: cli)",
    )
    parser.add_argument("-source", "--source", default="", help="Source path.")
    parser.add_argument("-target", "--target", default="", help="Target path.")
    parser.add_argument("-bucket", "--bucket", default="", help="Bucket name.")
    parser.add_argument("-endpoint", "--endpoint", default="", help="S3 endpoint URL.")
    parser.add_argument("-region", "--region", default="", help="S3 region.")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Prints usage to stderr and exits with status 1 if a required flag is
    missing or empty. The method is not validated here.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if any(not getattr(args, name) for name in REQUIRED_FLAGS):
        parser.print_help(sys.stderr)
        sys.exit(1)

    return args


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the upload CLI.

    Returns:
        Process exit status
    """
    args = parse_args(argv)

    try:
        settings = get_settings()
    except UploadError as e:
        print(str(e))
        return 1

    setup_logging(level=settings.log_level, log_format=settings.log_format)
    metrics = get_metrics(enabled=settings.metrics_enabled)

    try:
        access_key, secret_key = resolve_credentials()

        request = UploadRequest(
            source_path=args.source,
            target_path=args.target,
            bucket_name=args.bucket,
            endpoint=args.endpoint,
            region=args.region,
            access_key=access_key,
            secret_key=secret_key,
            method=UploadMethod.parse(args.method),
        )

        result = upload(request, metrics=metrics)

    except UploadError as e:
        log_error(logger, e.action, e)
        print(str(e))
        return 1

    except KeyboardInterrupt:
        print("Upload cancelled by user")
        return 130

    except Exception as e:
        logger.error(
            f"Unexpected error: {e}",
            exc_info=True,
            extra={"action": "unexpected", "data": {"error": str(e)}},
        )
        print(str(e))
        return 1

    finally:
        metrics.push(settings.pushgateway_url)

    logger.debug(
        f"Uploaded {result.bytes_uploaded} bytes to {result.uri} "
        f"in {result.duration_seconds:.2f}s"
    )
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
