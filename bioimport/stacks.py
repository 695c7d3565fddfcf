"""Typed plane stacks and their per-series assembly."""

import logging
from typing import Dict, Iterator, List, Optional

import numpy as np

from bioimport.models import SampleKind
from bioimport.planes import to_byte, to_short

logger = logging.getLogger(__name__)

# Order in which a series' stacks are reported
STACK_ORDER = (SampleKind.BYTE, SampleKind.USHORT, SampleKind.FLOAT, SampleKind.OTHER)


class TypedStack:
    """Ordered, labeled planes of one sample kind and one size.

    Python indexing is 0-based; :meth:`slice_label` and :meth:`processor` take
    1-based slice numbers.
    """

    def __init__(self, kind: SampleKind, width: int, height: int):
        self.kind = kind
        self.width = width
        self.height = height
        self.labels: List[str] = []
        self.planes: List[np.ndarray] = []
        # (3, 256) uint8 lookup table, rows red/green/blue
        self.color_table: Optional[np.ndarray] = None

    def add_slice(self, label: str, pixels: np.ndarray) -> None:
        if pixels.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"Plane of shape {pixels.shape[:2]} does not fit "
                f"{self.height} x {self.width} stack"
            )
        self.labels.append(label)
        self.planes.append(pixels)

    def slice_label(self, n: int) -> str:
        return self.labels[self._position(n)]

    def processor(self, n: int) -> np.ndarray:
        return self.planes[self._position(n)]

    def _position(self, n: int) -> int:
        if n < 1 or n > len(self.planes):
            raise IndexError(f"Slice {n} out of range 1-{len(self.planes)}")
        return n - 1

    def to_array(self) -> np.ndarray:
        return np.stack(self.planes)

    def __len__(self) -> int:
        return len(self.planes)

    def __getitem__(self, index: int) -> np.ndarray:
        return self.planes[index]

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.planes)

    def __repr__(self) -> str:
        return (
            f"TypedStack({self.kind.value}, {self.width}x{self.height}, "
            f"{len(self.planes)} planes)"
        )


class StackAssembler:
    """Routes the planes of one series into per-kind stacks.

    A float plane joins an existing byte stack, or failing that an existing
    short stack, after full-range conversion; in both cases any float stack
    gathered so far is dropped. Generic planes always go to the generic stack.
    """

    def __init__(self, image_name: str):
        self.image_name = image_name
        self.stacks: Dict[SampleKind, TypedStack] = {}

    def label(self, index: int) -> str:
        return f"{self.image_name}:{index + 1}"

    def add(self, index: int, kind: SampleKind, pixels: np.ndarray) -> TypedStack:
        """Append plane ``index`` (0-based) and return the stack it went to."""
        if kind is SampleKind.FLOAT:
            if SampleKind.BYTE in self.stacks:
                pixels = to_byte(pixels)
                kind = SampleKind.BYTE
                self._drop_float()
            elif SampleKind.USHORT in self.stacks:
                pixels = to_short(pixels)
                kind = SampleKind.USHORT
                self._drop_float()

        stack = self.stacks.get(kind)
        if stack is None:
            height, width = pixels.shape[:2]
            stack = self.stacks[kind] = TypedStack(kind, width, height)
        stack.add_slice(self.label(index), pixels)
        return stack

    def _drop_float(self) -> None:
        dropped = self.stacks.pop(SampleKind.FLOAT, None)
        if dropped is not None:
            logger.warning(
                f"{self.image_name}: discarding {len(dropped)} float plane(s) "
                "after integer planes appeared"
            )

    def results(self) -> List[TypedStack]:
        """Non-empty stacks in byte, short, float, generic order."""
        return [self.stacks[k] for k in STACK_ORDER if k in self.stacks]
