"""
Daily JSON archive store.

Layout:
    {archives_dir}/YYYY-MM-DD.json   one file per UTC day
    {archives_dir}/Zip/YYYYMM.zip    monthly bundles of daily files

A daily file maps device id -> {register name -> reading, "lastUpdate": ts}.
Writes merge into the existing file and never drop other devices' data.
"""

import json
import os
import re
import threading
import zipfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from typing_extensions import TypedDict

from modbus_ethermon.logging import get_logger
from modbus_ethermon.utils.exceptions import ArchiveNotFoundError, InternalError, ValidationError

logger = get_logger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_PATTERN = re.compile(r"^\d{6}$")
ZIP_DIR_NAME = "Zip"
LAST_UPDATE_KEY = "lastUpdate"


class ArchiveInfo(TypedDict):
    name: str
    date: str
    size: int
    createdAt: str
    modifiedAt: str


class ZipInfo(TypedDict):
    file: str
    month: str
    size: int
    files: int
    created: bool


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_file_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def validate_month(month: str) -> Tuple[int, int]:
    """
    Validate a YYYYMM month string.

    Raises:
        ValidationError: If the month is not six digits or the month number is out of range
    """
    if not MONTH_PATTERN.match(month or ""):
        raise ValidationError("Invalid month format. Use YYYYMM", {"month": month})
    year, month_num = int(month[:4]), int(month[4:])
    if not 1 <= month_num <= 12:
        raise ValidationError("Invalid month format. Use YYYYMM", {"month": month})
    return year, month_num


def validate_date(value: str) -> str:
    if not DATE_PATTERN.match(value or ""):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD", {"date": value})
    try:
        date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD", {"date": value}) from e
    return value


class ArchiveStore:
    """File-backed archive of device readings."""

    def __init__(self, archives_dir: Path, clock: Optional[Callable[[], datetime]] = None):
        self.archives_dir = archives_dir
        self.zip_dir = archives_dir / ZIP_DIR_NAME
        self._clock = clock or _utc_now
        self._lock = threading.Lock()

    def archive_path(self, date_str: str) -> Path:
        return self.archives_dir / f"{date_str}.json"

    def zip_path(self, month: str) -> Path:
        return self.zip_dir / f"{month}.zip"

    def today(self) -> str:
        return self._clock().astimezone(timezone.utc).date().isoformat()

    def save_device_data(self, device_id: str, readings: Dict[str, Any]) -> Path:
        """
        Merge one device's readings into today's archive file.

        An unreadable existing file is logged and treated as empty. Other
        devices' entries and this device's registers that are not in
        `readings` are kept.

        Args:
            device_id: Device identifier (top-level key in the file)
            readings: Mapping of register name to reading dict

        Returns:
            Path of the archive file written
        """
        now = self._clock()
        archive_file = self.archive_path(now.astimezone(timezone.utc).date().isoformat())

        with self._lock:
            self.archives_dir.mkdir(parents=True, exist_ok=True)

            archive_data: Dict[str, Any] = {}
            if archive_file.exists():
                try:
                    with archive_file.open("r", encoding="utf-8") as f:
                        loaded = json.load(f)
                    if isinstance(loaded, dict):
                        archive_data = loaded
                    else:
                        logger.error(f"Archive file {archive_file.name} is not a JSON object, starting from empty")
                except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                    logger.error(f"Error reading archive file {archive_file.name}: {e}")

            device_entry = archive_data.get(device_id)
            if not isinstance(device_entry, dict):
                device_entry = {}
            device_entry.update(readings)
            device_entry[LAST_UPDATE_KEY] = now.isoformat()
            archive_data[device_id] = device_entry

            tmp_file = archive_file.with_name(f".{archive_file.name}.tmp")
            try:
                with tmp_file.open("w", encoding="utf-8") as f:
                    json.dump(archive_data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_file, archive_file)
            except (OSError, TypeError, ValueError):
                tmp_file.unlink(missing_ok=True)
                raise

        logger.debug(f"Saved data of device {device_id} to archive {archive_file.name}")
        return archive_file

    def list_archives(self) -> List[ArchiveInfo]:
        """List daily archive files, newest first by date."""
        if not self.archives_dir.exists():
            return []

        archives: List[ArchiveInfo] = []
        for path in self.archives_dir.glob("*.json"):
            if not path.is_file():
                continue
            stat = path.stat()
            archives.append({
                "name": path.name,
                "date": path.stem,
                "size": stat.st_size,
                "createdAt": _format_file_time(getattr(stat, "st_birthtime", stat.st_ctime)),
                "modifiedAt": _format_file_time(stat.st_mtime),
            })

        archives.sort(key=lambda item: item["date"], reverse=True)
        return archives

    def get_archive_by_date(self, date_str: str) -> Dict[str, Any]:
        """
        Read one day's archive.

        Raises:
            ValidationError: If the date is not YYYY-MM-DD
            ArchiveNotFoundError: If there is no file for that day
            InternalError: If the file exists but cannot be parsed
        """
        validate_date(date_str)
        archive_file = self.archive_path(date_str)
        if not archive_file.exists():
            raise ArchiveNotFoundError(f"Archive for {date_str} not found", {"date": date_str})

        try:
            with archive_file.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Error reading archive {archive_file.name}: {e}")
            raise InternalError(f"Archive for {date_str} could not be read") from e

    def check_daily_archive(self, date_str: str) -> bool:
        """Report whether the daily archive of a given day exists."""
        archive_file = self.archive_path(date_str)
        if not archive_file.exists():
            logger.warning(f"Archive file for {date_str} not found, nothing to archive")
            return False
        logger.info(f"Daily archive for {date_str} already exists ({archive_file.stat().st_size} bytes)")
        return True

    def _month_files(self, year: int, month_num: int) -> List[Path]:
        prefix = f"{year:04d}-{month_num:02d}-"
        if not self.archives_dir.exists():
            return []
        return sorted(
            path for path in self.archives_dir.glob("*.json")
            if path.is_file() and path.name.startswith(prefix)
        )

    def create_monthly_zip(self, month: str, overwrite: bool = True) -> ZipInfo:
        """
        Bundle all daily files of a month into {month}.zip (deflate, level 9).

        Args:
            month: Month as YYYYMM
            overwrite: Rebuild an existing zip. With False an existing zip is
                left untouched and reported with created=False.

        Raises:
            ValidationError: If month is not YYYYMM
            ArchiveNotFoundError: If no daily file belongs to the month
        """
        year, month_num = validate_month(month)
        zip_file = self.zip_path(month)

        if zip_file.exists() and not overwrite:
            logger.warning(f"ZIP archive for {month} already exists, skipping")
            return {
                "file": zip_file.name,
                "month": month,
                "size": zip_file.stat().st_size,
                "files": self._count_zip_entries(zip_file),
                "created": False,
            }

        files = self._month_files(year, month_num)
        if not files:
            logger.warning(f"No archive files found for {year:04d}-{month_num:02d}")
            raise ArchiveNotFoundError(f"No archives found for month {month}", {"month": month})

        self.zip_dir.mkdir(parents=True, exist_ok=True)
        tmp_file = zip_file.with_name(f".{zip_file.name}.tmp")
        try:
            with zipfile.ZipFile(tmp_file, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
                for path in files:
                    zf.write(path, arcname=path.name)
            os.replace(tmp_file, zip_file)
        except OSError:
            tmp_file.unlink(missing_ok=True)
            raise

        size = zip_file.stat().st_size
        logger.info(f"ZIP archive for {month} created with {len(files)} file(s). Size: {size} bytes")
        return {
            "file": zip_file.name,
            "month": month,
            "size": size,
            "files": len(files),
            "created": True,
        }

    @staticmethod
    def _count_zip_entries(zip_file: Path) -> int:
        try:
            with zipfile.ZipFile(zip_file) as zf:
                return len(zf.namelist())
        except (OSError, zipfile.BadZipFile) as e:
            logger.error(f"Error reading ZIP archive {zip_file.name}: {e}")
            return 0

    def get_zip_path(self, month: str) -> Path:
        """
        Locate an existing monthly zip.

        Raises:
            ValidationError: If month is not YYYYMM
            ArchiveNotFoundError: If the zip does not exist
        """
        validate_month(month)
        zip_file = self.zip_path(month)
        if not zip_file.exists():
            raise ArchiveNotFoundError(f"ZIP archive for {month} not found", {"month": month})
        return zip_file

    def cleanup_old_archives(self, retention_days: int, retention_zips: int) -> List[str]:
        """
        Delete daily files beyond the newest `retention_days` and zips beyond
        the newest `retention_zips`, ordered by file name.

        Returns:
            Names of the deleted files
        """
        logger.info("Starting cleanup of old archives")
        deleted: List[str] = []

        if self.archives_dir.exists():
            daily_files = sorted(
                (p for p in self.archives_dir.glob("*.json") if p.is_file()),
                key=lambda p: p.name,
                reverse=True
            )
            deleted.extend(self._delete_files(daily_files[retention_days:], "archive"))

        if self.zip_dir.exists():
            zip_files = sorted(
                (p for p in self.zip_dir.glob("*.zip") if p.is_file()),
                key=lambda p: p.name,
                reverse=True
            )
            deleted.extend(self._delete_files(zip_files[retention_zips:], "ZIP archive"))

        logger.info(f"Archive cleanup completed: {len(deleted)} file(s) deleted")
        return deleted

    @staticmethod
    def _delete_files(paths: List[Path], label: str) -> List[str]:
        deleted = []
        for path in paths:
            try:
                path.unlink()
            except OSError as e:
                logger.error(f"Error deleting {label} {path.name}: {e}")
                continue
            logger.info(f"Deleted old {label}: {path.name}")
            deleted.append(path.name)
        return deleted
