"""Allow ``python -m s3_upload``."""

from s3_upload.cli import run

if __name__ == "__main__":
    run()
