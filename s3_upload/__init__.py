"""
s3-upload

Uploads a single local file to an S3-compatible bucket, either through the
external ``aws`` command-line tool or through boto3, and logs structured
progress events to standard output.

- uploader: Upload strategies, request types, and the dispatcher
- utils: Logging, configuration, and metrics helpers
- cli: Command-line entry point
"""

__version__ = "0.1.0"
