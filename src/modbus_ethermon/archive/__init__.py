"""Daily archive files and monthly zip bundles."""

from modbus_ethermon.archive.store import ArchiveInfo, ArchiveStore, ZipInfo, validate_month

__all__ = ["ArchiveInfo", "ArchiveStore", "ZipInfo", "validate_month"]
