#!/usr/bin/env python3
"""
Safe Write Operations with Atomic Writes and Checksums

Writes rating outputs to a temporary file first, computes a checksum, and
then atomically renames to the final destination so a failed run never
leaves a half-written ratings file behind.
"""

import hashlib
import json
from pathlib import Path
from typing import Any, Callable, Dict, Union, Optional
import pandas as pd
import logging

from src.utils.logger import get_logger


def compute_file_checksum(file_path: Path, algorithm: str = 'md5') -> str:
    """
    Compute checksum for a file.

    Args:
        file_path: Path to the file
        algorithm: Hash algorithm ('md5', 'sha1', 'sha256')

    Returns:
        Hexadecimal checksum string
    """
    hash_obj = hashlib.new(algorithm)

    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(4096), b""):
            hash_obj.update(chunk)

    return hash_obj.hexdigest()


def _atomic_write(path: Union[str, Path], fmt: str, writer: Callable[[Path], None],
                  logger: Optional[logging.Logger] = None) -> Dict[str, Union[str, int, Path]]:
    """
    Run writer against a temp file beside path, then rename into place.

    Raises:
        Exception: Whatever writer raised; the temp file is removed first
    """
    if logger is None:
        logger = get_logger()

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + '.tmp')

    try:
        logger.info(f"Writing {fmt.upper()} to temporary file: {temp_path}")
        writer(temp_path)

        checksum = compute_file_checksum(temp_path)
        size_bytes = temp_path.stat().st_size

        temp_path.replace(path)

        logger.info(f"Successfully wrote {fmt.upper()}: {path} ({size_bytes:,} bytes, MD5: {checksum})")

        return {
            "path": path,
            "checksum": checksum,
            "size_bytes": size_bytes,
            "format": fmt
        }

    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error(f"Failed to write {fmt.upper()} to {path}: {e}")
        raise


def safe_write_csv(df: pd.DataFrame, path: Union[str, Path],
                   logger: Optional[logging.Logger] = None) -> Dict[str, Union[str, int, Path]]:
    """
    Safely write DataFrame to CSV with atomic operation and checksum.

    Args:
        df: pandas DataFrame to write
        path: Destination file path
        logger: Optional logger instance

    Returns:
        Dictionary with path, checksum, and size information
    """
    return _atomic_write(
        path, "csv",
        lambda temp: df.to_csv(temp, index=False, lineterminator="\n"),
        logger
    )


def safe_write_json(data: Any, path: Union[str, Path],
                    logger: Optional[logging.Logger] = None) -> Dict[str, Union[str, int, Path]]:
    """
    Safely write JSON data with atomic operation and checksum.

    Paths, timestamps and numpy scalars are written via str().
    """
    def _dump(temp: Path) -> None:
        with open(temp, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

    return _atomic_write(path, "json", _dump, logger)


def verify_file_integrity(file_path: Path, expected_checksum: str,
                         algorithm: str = 'md5') -> bool:
    """
    Verify file integrity by comparing checksums.

    Args:
        file_path: Path to the file to verify
        expected_checksum: Expected checksum value
        algorithm: Hash algorithm used

    Returns:
        True if checksums match, False otherwise
    """
    if not file_path.exists():
        return False

    actual_checksum = compute_file_checksum(file_path, algorithm)
    return actual_checksum == expected_checksum
