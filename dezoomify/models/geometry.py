"""
Integer 2D vector used for tile positions and image sizes.
"""

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Vec2d:
    """A non-negative integer pair (x, y), also used as (width, height)."""

    x: int
    y: int

    def __post_init__(self):
        if self.x < 0 or self.y < 0:
            raise ValueError(f"Vec2d components must be non-negative: ({self.x}, {self.y})")

    @classmethod
    def square(cls, side: int) -> "Vec2d":
        return cls(side, side)

    def area(self) -> int:
        return self.x * self.y

    def max(self, other: "Vec2d") -> "Vec2d":
        """Component-wise maximum."""
        return Vec2d(max(self.x, other.x), max(self.y, other.y))

    def fits_inside(self, other: "Vec2d") -> bool:
        return self.x <= other.x and self.y <= other.y

    def as_tuple(self) -> tuple[int, int]:
        return self.x, self.y

    def size_str(self) -> str:
        return f"{self.x}x{self.y}"

    def __add__(self, other: "Vec2d") -> "Vec2d":
        return Vec2d(self.x + other.x, self.y + other.y)

    def __str__(self) -> str:
        return f"{self.x},{self.y}"
