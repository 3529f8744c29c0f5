"""
Layout reconstruction module.

Provides:
- Geometry data classes (Point, Quad) in page-normalized coordinates
- TextObservation, one recognized fragment with its position
- Observation filtering and an optional geometric reading-order pass
- LayoutReconstructor, which infers line breaks, paragraph breaks and
  indentation from the horizontal extent of consecutive fragments

Coordinates are normalized to [0, 1] with the origin at the bottom-left
corner of the page, so larger y means higher on the page.
"""

import math
import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple, Iterable, Iterator, Sequence

from ..config import Options, READING_ORDER_GEOMETRY
from ..exceptions import EmptyInput

logger = logging.getLogger(__name__)

# Positions are compared on a tenths grid to absorb recognition jitter
POSITION_SCALE = 10.0


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class Point:
    """A point in page-normalized coordinates."""
    x: float
    y: float

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


@dataclass(frozen=True)
class Quad:
    """Four corners of a recognized fragment."""
    top_left: Point
    top_right: Point
    bottom_left: Point
    bottom_right: Point

    @property
    def corners(self) -> Tuple[Point, Point, Point, Point]:
        return (self.top_left, self.top_right, self.bottom_left, self.bottom_right)

    @property
    def top(self) -> float:
        return max(self.top_left.y, self.top_right.y)

    def is_finite(self) -> bool:
        return all(p.is_finite() for p in self.corners)

    @classmethod
    def from_bbox(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        width: float,
        height: float
    ) -> 'Quad':
        """
        Build a quad from a pixel box with a top-left image origin.

        Args:
            x1, y1: Top-left corner in pixels
            x2, y2: Bottom-right corner in pixels
            width, height: Image size in pixels
        """
        left, right = x1 / width, x2 / width
        top, bottom = 1.0 - y1 / height, 1.0 - y2 / height
        return cls(
            top_left=Point(left, top),
            top_right=Point(right, top),
            bottom_left=Point(left, bottom),
            bottom_right=Point(right, bottom),
        )

    @classmethod
    def from_polygon(
        cls,
        points: Sequence[Sequence[float]],
        width: float,
        height: float
    ) -> 'Quad':
        """
        Build a quad from a clockwise pixel polygon [tl, tr, br, bl],
        as returned by EasyOCR and PaddleOCR.
        """
        if len(points) != 4:
            raise ValueError(f"Expected 4 points, got {len(points)}")

        def norm(p) -> Point:
            return Point(float(p[0]) / width, 1.0 - float(p[1]) / height)

        tl, tr, br, bl = (norm(p) for p in points)
        return cls(top_left=tl, top_right=tr, bottom_left=bl, bottom_right=br)


def scale_position(value: float) -> int:
    """Scale a normalized coordinate onto the comparison grid.

    Halves round away from zero.
    """
    scaled = POSITION_SCALE * value
    return int(math.copysign(math.floor(abs(scaled) + 0.5), scaled))


@dataclass(frozen=True)
class TextObservation:
    """One recognized line of text and where it sits on the page."""
    text: str
    quad: Optional[Quad]
    confidence: Optional[float] = None

    @property
    def start(self) -> int:
        return scale_position(self.quad.bottom_left.x)

    @property
    def end(self) -> int:
        return scale_position(self.quad.bottom_right.x)


@dataclass
class LayoutState:
    """Per-page reconstruction state. Never reused across pages."""
    indent_level: int = 0
    prev_start: Optional[int] = None
    prev_end: Optional[int] = None


# ============================================================================
# Pre-processing
# ============================================================================

def filter_observations(observations: Iterable[TextObservation]) -> List[TextObservation]:
    """
    Drop fragments the reconstructor cannot use.

    Text is trimmed; entries whose text is empty afterwards, or whose
    geometry is missing or non-numeric, are discarded. Order is preserved.
    """
    observations = list(observations)
    kept = []
    for obs in observations:
        if obs is None or obs.text is None:
            continue

        text = obs.text.strip()
        if not text:
            continue

        try:
            if obs.quad is None or not obs.quad.is_finite():
                continue
        except (AttributeError, TypeError):
            continue

        if text != obs.text:
            obs = replace(obs, text=text)
        kept.append(obs)

    dropped = len(observations) - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped} unusable fragment(s)")

    return kept


def sort_by_reading_order(observations: Iterable[TextObservation]) -> List[TextObservation]:
    """
    Order fragments top-to-bottom, then left-to-right.

    Only used when the engine's emission order cannot be trusted. The top
    edge is compared on the same tenths grid as start/end so that fragments
    on one visual line keep a left-to-right order.
    """
    return sorted(
        observations,
        key=lambda obs: (-scale_position(obs.quad.top), obs.start)
    )


# ============================================================================
# Layout Reconstructor
# ============================================================================

class LayoutReconstructor:
    """
    Infers paragraph structure and indentation from fragment geometry.

    Fragments are consumed strictly in the order given. Each fragment's
    start/end (the x of its bottom-left/bottom-right corners) is compared
    with the previous fragment's:

    - pushed right and ending earlier: a new block, so break the line
    - pushed right: one level deeper, on a new line
    - pulled left: one level shallower (never below 1), on a new line
    - ending earlier than the line above: a wrapped line ends here
    """

    def __init__(self, options: Optional[Options] = None):
        self.options = options or Options()

    def iter_chunks(self, fragments: Iterable[TextObservation]) -> Iterator[str]:
        """
        Yield the formatted text one fragment at a time.

        Raises:
            EmptyInput: If there are no fragments
        """
        fragments = list(fragments)
        if not fragments:
            raise EmptyInput("No text found")

        if self.options.reading_order == READING_ORDER_GEOMETRY:
            fragments = sort_by_reading_order(fragments)

        state = LayoutState()
        for fragment in fragments:
            yield self._emit(fragment, state)

    def reconstruct(self, fragments: Iterable[TextObservation]) -> str:
        """Return the formatted text for one page."""
        return "".join(self.iter_chunks(fragments))

    def _emit(self, fragment: TextObservation, state: LayoutState) -> str:
        start = fragment.start
        end = fragment.end

        if state.prev_start is None:
            state.prev_start = start
            state.prev_end = end
            return f"{fragment.text} "

        out = []

        if start > state.prev_start and end < state.prev_end:
            out.append("\n")

        if start > state.prev_start:
            state.indent_level += 1
            out.append("\n")
        elif start < state.prev_start:
            if state.indent_level > 1:
                state.indent_level -= 1
                out.append("\n")

        if start >= state.prev_start:
            if self.options.indent_enabled and state.indent_level > 0:
                out.append(self.options.indent_string * state.indent_level)
            state.prev_start = start

        out.append(f"{fragment.text} ")

        if end < state.prev_end:
            out.append("\n")

        state.prev_end = end
        return "".join(out)


def reconstruct(
    fragments: Iterable[TextObservation],
    options: Optional[Options] = None
) -> str:
    """Convenience wrapper around LayoutReconstructor.reconstruct."""
    return LayoutReconstructor(options).reconstruct(fragments)
