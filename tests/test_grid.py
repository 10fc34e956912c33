import pytest

from leadgen.etl.grid import build_grid_points
from leadgen.models import GridPoint, Viewport

VIEWPORT = Viewport(southwest=GridPoint(lat=0.0, lng=0.0), northeast=GridPoint(lat=3.0, lng=3.0))


def test_nine_points_form_three_by_three():
    points = build_grid_points(VIEWPORT, 9)
    assert len(points) == 9
    assert points[0] == GridPoint(lat=0.5, lng=0.5)
    assert points[4] == GridPoint(lat=1.5, lng=1.5)
    assert points[-1] == GridPoint(lat=2.5, lng=2.5)


def test_partial_last_row():
    # 5 points -> 3 columns x 2 rows, second row holds two points
    points = build_grid_points(VIEWPORT, 5)
    assert len(points) == 5
    assert [p.lat for p in points] == [0.75, 0.75, 0.75, 2.25, 2.25]
    assert [p.lng for p in points] == [0.5, 1.5, 2.5, 0.5, 1.5]


@pytest.mark.parametrize("count", [1, 2, 7, 16, 25])
def test_points_stay_inside_viewport(count):
    points = build_grid_points(VIEWPORT, count)
    assert len(points) == count
    for point in points:
        assert 0.0 < point.lat < 3.0
        assert 0.0 < point.lng < 3.0


def test_single_point_is_viewport_center():
    assert build_grid_points(VIEWPORT, 1) == [VIEWPORT.center]


def test_zero_points():
    assert build_grid_points(VIEWPORT, 0) == []
