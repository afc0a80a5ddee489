"""Archive packaging adapters."""

from share_cli.infrastructure.packaging.zip_packager import (
    ZipPackager,
    archive_name,
    compute_checksum,
)

__all__ = ["ZipPackager", "archive_name", "compute_checksum"]
