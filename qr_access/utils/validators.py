# =======================================================================================
# qr_access/utils/validators.py - Validation Helpers
# =======================================================================================
from datetime import date
from typing import Tuple, Union

from .exceptions import MalformedInputError
from ..models.enums import ScanKind


class InputValidator:
    """Validates caller input before it reaches the store."""

    @staticmethod
    def parse_scan_kind(value: Union[str, ScanKind]) -> ScanKind:
        """Accept 'entry' / 'exit' (any case) or a ScanKind."""
        if isinstance(value, ScanKind):
            return value
        try:
            return ScanKind(str(value).strip().lower())
        except ValueError:
            raise MalformedInputError(f"Unknown scan kind: {value!r}") from None

    @staticmethod
    def validate_window(start_date: date, end_date: date) -> Tuple[date, date]:
        if start_date > end_date:
            raise MalformedInputError("start_date must not be after end_date")
        return start_date, end_date

    @staticmethod
    def validate_paging(limit: int, offset: int, max_limit: int) -> Tuple[int, int]:
        """Reject negative offsets and clamp limit into 1..max_limit."""
        if offset < 0:
            raise MalformedInputError("offset must not be negative")
        if limit < 1:
            raise MalformedInputError("limit must be positive")
        return min(limit, max_limit), offset
