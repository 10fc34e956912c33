"""Grid sampling of a geocoded viewport for nearby searches."""

import math
from typing import List

from leadgen.models import GridPoint, Viewport


def build_grid_points(viewport: Viewport, count: int) -> List[GridPoint]:
    """Lay ``count`` points on a near-square grid, one at the centre of each cell.

    Cells are visited row by row from the south-west corner and emission stops
    after ``count`` points, so the last row may be partially filled.
    """
    if count < 1:
        return []
    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)

    sw, ne = viewport.southwest, viewport.northeast
    cell_lat = (ne.lat - sw.lat) / rows
    cell_lng = (ne.lng - sw.lng) / cols

    points: List[GridPoint] = []
    for row in range(rows):
        for col in range(cols):
            if len(points) >= count:
                return points
            points.append(
                GridPoint(
                    lat=sw.lat + (row + 0.5) * cell_lat,
                    lng=sw.lng + (col + 0.5) * cell_lng,
                )
            )
    return points
