from nswatch.model import Namespace, Pod
from nswatch.positions import CollapseState, build_positions
from nswatch.viewport import (
    READY_COL_WIDTH,
    RESTARTS_COL_WIDTH,
    TOP_BORDER,
    Cursor,
    Viewport,
    column_offsets,
    resolve,
)


def positions_for(count: int):
    pods = tuple(Pod(f"pod-{i}", "ns") for i in range(count))
    return build_positions([Namespace("ns", pods=pods)], CollapseState())


def test_index_and_screen_row_are_inverse() -> None:
    viewport = Viewport(width=80, height=24, scroll_offset=7)

    assert viewport.index_at(TOP_BORDER) == 7
    assert viewport.index_at(TOP_BORDER + 3) == 10
    assert viewport.screen_row(10) == TOP_BORDER + 3
    assert viewport.drawable_height == 14


def test_visible_rows_fill_body_only() -> None:
    positions = positions_for(40)
    viewport = Viewport(width=80, height=24)

    rows = viewport.visible_rows(positions)

    assert len(rows) == viewport.drawable_height
    assert rows[0] == (TOP_BORDER, 0, positions.namespaces[0])
    assert rows[-1][0] == viewport.body_end - 1


def test_visible_rows_stop_at_end_of_list() -> None:
    positions = positions_for(3)
    viewport = Viewport(width=80, height=24, scroll_offset=2)

    rows = viewport.visible_rows(positions)

    assert [index for _, index, _ in rows] == [2, 3]
    assert Viewport(height=24, scroll_offset=10).visible_rows(positions) == []


def test_tiny_window_draws_nothing() -> None:
    viewport = Viewport(width=80, height=8)

    assert viewport.drawable_height == 0
    assert viewport.visible_rows(positions_for(5)) == []


def test_clamp_keeps_cursor_between_borders() -> None:
    viewport = Viewport(height=24, bottom_border=9)

    assert viewport.clamp(12) == 9
    assert viewport.clamp(2) == TOP_BORDER
    assert viewport.clamp(7) == 7
    # empty list: bottom border above the top one
    viewport.bottom_border = TOP_BORDER - 1
    assert viewport.clamp(TOP_BORDER) == TOP_BORDER


def test_resolve_cursor() -> None:
    positions = positions_for(2)
    viewport = Viewport(height=24, scroll_offset=1)

    assert resolve(Cursor(0, TOP_BORDER), viewport, positions).name == "pod-0"
    assert resolve(Cursor(0, TOP_BORDER + 1), viewport, positions).name == "pod-1"
    assert resolve(Cursor(0, TOP_BORDER + 2), viewport, positions) is None


def test_column_offsets_follow_dynamic_widths() -> None:
    positions = positions_for(1)

    ready_x, status_x, restarts_x, age_x = column_offsets(positions)

    assert ready_x == positions.name_width
    assert status_x == ready_x + READY_COL_WIDTH
    assert restarts_x == status_x + positions.status_width
    assert age_x == restarts_x + RESTARTS_COL_WIDTH
