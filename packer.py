import logging
from collections import namedtuple
from typing import Any, Iterator, List, Optional, Sequence


logger = logging.getLogger(__name__)


Point = namedtuple("Point", "x y")


def make_name_id(name: str) -> str:
    """Turn a file name into a usually valid identifier: drop the extension, replace - and . with _."""
    parts = name.split(".")
    if len(parts) > 1:
        name = "_".join(parts[:-1])
    return name.replace("-", "_").replace(".", "_")


class Rectangle:
    """Represents one packable image with its padded size and, once placed, its position."""
    def __init__(self, width: int, height: int, padding: int = 0, name: str = "", source: Any = None):
        if padding < 0:
            raise ValueError(f"padding must be >= 0: {padding}")
        self.width = width
        self.height = height
        self.padding = padding
        self.name = name
        self.name_id = make_name_id(name)
        self.source = source  # Opaque handle to the decoded pixels, never inspected here
        self.padded_width = width + padding
        self.padded_height = height + padding
        self.reset()

    def __repr__(self):
        where = f"at ({self.x},{self.y})" if self.is_placed else "unplaced"
        return f"Rectangle({self.width}×{self.height}+{self.padding} {where} - {self.name})"

    @property
    def is_placed(self) -> bool:
        return self.x is not None

    @property
    def padded_area(self) -> int:
        return self.padded_width * self.padded_height

    def place_at(self, x: int, y: int):
        """Set the top-left corner and every edge derived from it."""
        self.x = x
        self.y = y
        self.right = x + self.width
        self.bottom = y + self.height
        self.padded_right = self.right + self.padding
        self.padded_bottom = self.bottom + self.padding

    def reset(self):
        """Clear all placement state."""
        self.x = None
        self.y = None
        self.right = None
        self.bottom = None
        self.padded_right = None
        self.padded_bottom = None

    def overlaps(self, other: 'Rectangle') -> bool:
        """Check if the padded footprints intersect. Touching edges do not count."""
        return (
            self.x < other.padded_right and
            self.padded_right > other.x and
            self.y < other.padded_bottom and
            self.padded_bottom > other.y
        )


def build_rectangle(width: int, height: int, padding: int, name: str, source: Any = None) -> Rectangle:
    """Build an unplaced rectangle for one image. No I/O."""
    return Rectangle(width, height, padding, name, source)


def sort_rectangles(rectangles: Sequence[Rectangle]) -> List[Rectangle]:
    """Order by padded area, largest first. Equal areas keep their input order."""
    # sorted() stays stable with reverse=True
    return sorted(rectangles, key=lambda r: r.padded_area, reverse=True)


class CandidatePoints:
    """Untried top-left anchors, scanned oldest-first."""

    def __init__(self, seed: Point = Point(0, 0)):
        self._points = [seed]

    def __iter__(self) -> Iterator[Point]:
        return iter(list(self._points))

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self):
        return f"CandidatePoints({self._points})"

    def as_tuple(self) -> tuple:
        return tuple(self._points)

    def consume(self, index: int) -> Point:
        """Remove the point a rectangle was just placed at."""
        return self._points.pop(index)

    def extend_from(self, rect: Rectangle):
        """Append the anchors to the right of and below a placed rectangle."""
        self._points.append(Point(rect.x + rect.padded_width, rect.y))
        self._points.append(Point(rect.x, rect.y + rect.padded_height))


def can_place(rect: Rectangle, canvas: Rectangle, anchor: Point, placed: Sequence[Rectangle]) -> bool:
    """
    Check if a rectangle fits on the canvas with its top-left corner at anchor.

    The padded size has to fit inside the canvas bounds. On passing the bounds
    check the position is committed to rect, and it stays committed even when
    an overlap makes this return False.
    """
    if rect.width <= 0 or rect.height <= 0:
        return False
    if anchor.x + rect.padded_width > canvas.width or anchor.y + rect.padded_height > canvas.height:
        return False

    rect.place_at(anchor.x, anchor.y)
    for other in placed:
        if rect.overlaps(other):
            return False
    return True


class UnplaceableRectangle(Exception):
    """No candidate point admits the rectangle on the canvas."""

    def __init__(self, rect: Rectangle, canvas_width: int, canvas_height: int):
        self.rect = rect
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        super().__init__(
            f"Could not make {rect.name or 'rectangle'} "
            f"({rect.padded_width}×{rect.padded_height} padded) fit into {canvas_width}×{canvas_height}"
        )


class PackResult:
    """Outcome of one packing run."""

    def __init__(self, placed: List[Rectangle], canvas_width: int, canvas_height: int,
                 points: tuple = (), unplaceable: Optional[Rectangle] = None,
                 skipped: Optional[List[Rectangle]] = None):
        self.placed = placed
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.points = points
        self.unplaceable = unplaceable
        self.skipped = skipped or []

    def __repr__(self):
        state = "complete" if self.complete else f"stuck on {self.unplaceable!r}"
        return f"PackResult({len(self.placed)} placed in {self.canvas_width}×{self.canvas_height}, {state})"

    @property
    def complete(self) -> bool:
        return self.unplaceable is None

    @property
    def error(self) -> Optional[UnplaceableRectangle]:
        if self.unplaceable is None:
            return None
        return UnplaceableRectangle(self.unplaceable, self.canvas_width, self.canvas_height)

    def raise_for_failure(self):
        if self.unplaceable is not None:
            raise self.error


def pack(rectangles: Sequence[Rectangle], canvas_width: int, canvas_height: int) -> PackResult:
    """
    Place rectangles, in the given order, at the first candidate point that fits.

    Stops at the first rectangle that fits nowhere; it and everything after it
    stay unplaced. Placements are never revisited.
    """
    canvas = Rectangle(canvas_width, canvas_height)
    points = CandidatePoints()
    placed: List[Rectangle] = []

    for i, rect in enumerate(rectangles):
        fitted = False
        for n, point in enumerate(points):
            if can_place(rect, canvas, point, placed):
                points.consume(n)
                points.extend_from(rect)
                placed.append(rect)
                fitted = True
                logger.debug(f"Placed {rect.name} at ({rect.x},{rect.y})")
                break

        if not fitted:
            # The tester may have left a tentative position behind
            rect.reset()
            skipped = list(rectangles[i + 1:])
            for later in skipped:
                later.reset()
            logger.warning(f"Could not make {rect!r} fit, {len(skipped)} rectangles not attempted")
            return PackResult(placed, canvas_width, canvas_height, points.as_tuple(), rect, skipped)

    return PackResult(placed, canvas_width, canvas_height, points.as_tuple())
