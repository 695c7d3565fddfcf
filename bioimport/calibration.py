"""Physical calibration of produced stacks."""

import math
from typing import Optional, Tuple

from bioimport.models import Calibration

UNIT = "micron"


def _present(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


def make_calibration(
    pixel_width: Optional[float],
    pixel_height: Optional[float],
    pixel_depth: Optional[float],
) -> Optional[Calibration]:
    """Build a calibration holding only the sizes that are known.

    Returns ``None`` when none of the three sizes is known.
    """
    sizes = [v if _present(v) else None for v in (pixel_width, pixel_height, pixel_depth)]
    if all(v is None for v in sizes):
        return None
    return Calibration(
        pixel_width=sizes[0], pixel_height=sizes[1], pixel_depth=sizes[2], unit=UNIT
    )


def calibration_for(reader) -> Optional[Calibration]:
    """Calibration of the reader's current series."""
    sizes: Tuple[Optional[float], ...] = reader.physical_pixel_sizes
    return make_calibration(*sizes)
