"""
Origin-based admission filter.

Holds a static denylist of origin identifiers loaded once before the
simulation starts. Loading fails open: an unreadable or malformed source
leaves the denylist empty and every origin is admitted.
"""

import logging
import os
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Union

logger = logging.getLogger(__name__)

DenylistSource = Union[str, os.PathLike, Iterable[str]]


class AdmissionFilter:
    """
    Admit/deny decision for incoming work, keyed on origin.

    Denylist sources:
        - Path to a text file with one origin per line
        - Any iterable of origin strings

    Records are stripped of surrounding whitespace (including the "\\r" of
    CRLF files) and blank records are skipped.

    Example:
        >>> gate = AdmissionFilter()
        >>> gate.load(["10.0.0.5", "10.0.0.9"])
        2
        >>> gate.is_denied("10.0.0.5")
        True
        >>> gate.is_denied("10.0.0.6")
        False
    """

    def __init__(self, source: Optional[DenylistSource] = None):
        """
        Initialize filter.

        Args:
            source: Optional denylist source loaded immediately
        """
        self._denied: FrozenSet[str] = frozenset()
        self._loaded = False
        if source is not None:
            self.load(source)

    def load(self, source: DenylistSource) -> int:
        """
        Load the denylist.

        Args:
            source: File path or iterable of origin strings

        Returns:
            Number of non-empty records read (0 when the source could not be used)

        Raises:
            RuntimeError: If a denylist was already loaded into this filter
        """
        if self._loaded:
            raise RuntimeError("denylist already loaded; it is immutable for the run")
        self._loaded = True

        if isinstance(source, (str, os.PathLike)):
            path = Path(source)
            try:
                with open(path, encoding="utf-8") as f:
                    records = f.read().splitlines()
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(
                    "Could not read denylist %s (%s); continuing without IP blocking",
                    path,
                    e,
                )
                return 0
            label = str(path)
        else:
            label = "iterable source"
            try:
                records = list(source)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(
                    "Could not read denylist from %s (%s); continuing without IP blocking",
                    label,
                    e,
                )
                return 0

        entries = []
        for record in records:
            if not isinstance(record, str):
                logger.warning(
                    "Malformed denylist record %r in %s; continuing without IP blocking",
                    record,
                    label,
                )
                return 0
            record = record.strip()
            if record:
                entries.append(record)

        self._denied = frozenset(entries)
        logger.info("Loaded %d blocked origins from %s", len(entries), label)
        return len(entries)

    def is_denied(self, origin: str) -> bool:
        """True if origin is on the denylist."""
        return origin in self._denied

    def denied_count(self) -> int:
        """Number of distinct denied origins."""
        return len(self._denied)

    @property
    def denied(self) -> FrozenSet[str]:
        return self._denied

    def __contains__(self, origin: str) -> bool:
        return origin in self._denied

    def __repr__(self) -> str:
        return f"AdmissionFilter(denied={len(self._denied)})"
