"""Interfaces the importer talks to, and their non-interactive defaults.

The importer never prompts, draws or persists anything itself; it hands those
jobs to the objects described here. The ``Default*``/``Logging*`` classes are
what scripted and command-line imports use.
"""

import logging
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from bioimport.models import ImageProduct, ImportOptions, SeriesDescriptor

logger = logging.getLogger(__name__)

RawRange = Tuple[int, int, int]


class Prompter(Protocol):
    """Asks for the user's choices. Returning ``None`` cancels the import."""

    def choose_source(self, default: Optional[str]) -> Optional[str]: ...

    def choose_options(self, defaults: ImportOptions) -> Optional[ImportOptions]: ...

    def choose_series(
        self, descriptors: Sequence[SeriesDescriptor], include: List[bool]
    ) -> Optional[List[bool]]: ...

    def choose_ranges(
        self,
        descriptors: Sequence[SeriesDescriptor],
        include: Sequence[bool],
        defaults: List[Optional[RawRange]],
    ) -> Optional[List[Optional[RawRange]]]: ...


class Display(Protocol):
    def show(self, product: ImageProduct) -> None: ...


class MetadataDisplay(Protocol):
    def show_metadata(self, title: str, table: Dict[str, Any]) -> None: ...


class Preferences(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def save(self) -> None: ...


class Status(Protocol):
    def show_status(self, text: str) -> None: ...

    def show_progress(self, fraction: float) -> None: ...


class ErrorReporter(Protocol):
    def error(self, title: str, message: str) -> None: ...


class DefaultPrompter:
    """Answers every prompt from values fixed up front.

    Args:
        source: Path returned by :meth:`choose_source`, or ``None`` to keep
            the caller's default
        options: Options to use instead of the persisted defaults
        overrides: Individual option fields applied on top of the defaults
        include: Series inclusion flags; defaults are kept when ``None``
        ranges: 1-based ``(begin, end, step)`` per series
    """

    def __init__(
        self,
        source: Optional[str] = None,
        options: Optional[ImportOptions] = None,
        overrides: Optional[Dict[str, bool]] = None,
        include: Optional[List[bool]] = None,
        ranges: Optional[List[Optional[RawRange]]] = None,
    ):
        self.source = source
        self.options = options
        self.overrides = dict(overrides or {})
        self.include = include
        self.ranges = ranges

    def choose_source(self, default: Optional[str]) -> Optional[str]:
        return self.source if self.source is not None else default

    def choose_options(self, defaults: ImportOptions) -> Optional[ImportOptions]:
        options = self.options if self.options is not None else defaults
        if self.overrides:
            options = replace(options, **self.overrides)
        return options

    def choose_series(self, descriptors, include):
        if self.include is None:
            return include
        if len(self.include) != len(descriptors):
            raise ValueError(
                f"Got {len(self.include)} series flags for {len(descriptors)} series"
            )
        return list(self.include)

    def choose_ranges(self, descriptors, include, defaults):
        if self.ranges is None:
            return defaults
        ranges = list(self.ranges) + [None] * (len(descriptors) - len(self.ranges))
        return [r if r is not None else d for r, d in zip(ranges, defaults)]


class LoggingStatus:
    """Writes status text to the log and keeps the last progress fraction."""

    def __init__(self):
        self.progress = 0.0

    def show_status(self, text: str) -> None:
        if text:
            logger.info(text)

    def show_progress(self, fraction: float) -> None:
        self.progress = fraction


class LoggingErrorReporter:
    def error(self, title: str, message: str) -> None:
        logger.error(f"{title}: {message}")


class CollectingDisplay:
    """Keeps every product it is shown."""

    def __init__(self):
        self.products: List[ImageProduct] = []

    def show(self, product: ImageProduct) -> None:
        self.products.append(product)


class LoggingMetadataDisplay:
    def show_metadata(self, title: str, table: Dict[str, Any]) -> None:
        logger.info(title)
        for key in sorted(table):
            logger.info(f"  {key} = {table[key]}")


class RateLimiter:
    """Lets one event through per ``interval`` seconds of wall time."""

    def __init__(self, interval: float = 0.1, clock=time.monotonic):
        self.interval = interval
        self.clock = clock
        self.last = clock()

    def ready(self) -> bool:
        now = self.clock()
        if now - self.last >= self.interval:
            self.last = now
            return True
        return False
