# matchmycv/rendering/pagination.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from .layout import Block, Layout


@dataclass(frozen=True)
class Page:
    number: int
    indices: tuple[int, ...]
    blocks: tuple[Block, ...]
    height: float


def paginate(heights: Sequence[float], available: float) -> list[list[int]]:
    """Greedy first-fit pagination over block heights.

    A block moves to a new page only when the current page already holds
    something, so a block taller than ``available`` lands alone on its own
    page instead of looping.
    """
    if available <= 0:
        raise ValueError("available height must be positive")
    pages: list[list[int]] = []
    current: list[int] = []
    used = 0.0
    for idx, h in enumerate(heights):
        if h < 0:
            raise ValueError(f"block {idx} has negative height")
        if current and used + h > available:
            pages.append(current)
            current, used = [], 0.0
        current.append(idx)
        used += h
    if current:
        pages.append(current)
    return pages


def page_breaks(pages: Sequence[Sequence[int]]) -> list[int]:
    """Index of the first block on every page after the first."""
    return [page[0] for page in pages[1:]]


def paginate_layout(layout: Layout) -> list[Page]:
    out = []
    for n, indices in enumerate(paginate(layout.heights, layout.geometry.content_height), start=1):
        blocks = tuple(layout.blocks[i] for i in indices)
        out.append(Page(number=n, indices=tuple(indices), blocks=blocks,
                        height=sum(b.height for b in blocks)))
    return out
