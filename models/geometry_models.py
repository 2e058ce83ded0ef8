# models/geometry_models.py
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Point:
    """2次元座標上の点。

    Attributes:
        x (float): X座標。
        y (float): Y座標。
    """
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    """幅と高さの組。

    Attributes:
        width (float): 幅。
        height (float): 高さ。
    """
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    """左上原点の矩形。

    Attributes:
        x (float): 左端のX座標。
        y (float): 上端のY座標。
        width (float): 幅。
        height (float): 高さ。
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def top_left(self) -> Point:
        return Point(self.x, self.y)

    def is_empty(self) -> bool:
        """幅または高さが0以下かどうかを返す。"""
        return self.width <= 0 or self.height <= 0

    def contains(self, point: Point) -> bool:
        """点が矩形内（境界を含む）にあるかどうかを返す。"""
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Rect':
        return cls(
            x=float(data.get('x', 0.0)),
            y=float(data.get('y', 0.0)),
            width=float(data.get('width', 0.0)),
            height=float(data.get('height', 0.0)),
        )
