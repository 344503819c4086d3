#!/usr/bin/env python3
"""
Upload a file to an S3-compatible bucket.

Script wrapper around s3_upload.cli for running from a source checkout
without installing the package.

Usage:
    python scripts/upload.py -source dump.rdb -target backups/dump.rdb \\
        -bucket backups -endpoint https://s3.amazonaws.com -region us-east-1
    python scripts/upload.py -method sdk -source dump.rdb -target dump.rdb \\
        -bucket backups -endpoint http://localhost:9000 -region us-east-1
"""

import sys
from pathlib import Path

# Add project root to path for imports (before other imports)
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from s3_upload.cli import main  # noqa: E402


if __name__ == "__main__":
    sys.exit(main())
