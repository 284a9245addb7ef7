"""Pan/zoom camera applied at render time only."""

from dataclasses import dataclass

MIN_ZOOM = 0.1
MAX_ZOOM = 4.0
ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9


@dataclass
class Camera:
    """
    Screen = world * zoom + (x, y).

    The camera never changes simulation coordinates; it only maps between
    world and screen space.
    """

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    def __post_init__(self) -> None:
        self.zoom = clamp_zoom(self.zoom)

    def screen_to_world(self, sx: float, sy: float) -> tuple[float, float]:
        return (sx - self.x) / self.zoom, (sy - self.y) / self.zoom

    def world_to_screen(self, wx: float, wy: float) -> tuple[float, float]:
        return wx * self.zoom + self.x, wy * self.zoom + self.y

    def pan(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def zoom_by(self, factor: float, anchor_x: float, anchor_y: float) -> None:
        """Scale by ``factor`` keeping the screen point (anchor_x, anchor_y) fixed."""
        wx, wy = self.screen_to_world(anchor_x, anchor_y)
        self.zoom = clamp_zoom(self.zoom * factor)
        self.x = anchor_x - wx * self.zoom
        self.y = anchor_y - wy * self.zoom

    def wheel(self, delta_y: float, x: float, y: float) -> None:
        """Mouse wheel: scrolling down zooms out, up zooms in."""
        if delta_y == 0:
            return
        self.zoom_by(ZOOM_OUT_FACTOR if delta_y > 0 else ZOOM_IN_FACTOR, x, y)

    def reset(self) -> None:
        self.x = 0.0
        self.y = 0.0
        self.zoom = 1.0


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))
