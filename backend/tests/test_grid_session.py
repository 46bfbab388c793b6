"""
Testes da sessão de edição (uma célula por vez)
"""
from datetime import date
import pytest
from app.grid import (
    CellNotEditableError,
    DraftValidationError,
    EditState,
    EditTrigger,
    GridError,
    MediaPlanGrid,
)
from tests.grid_support import FakeStore, run

DAY = date(2025, 1, 15)


def _grid():
    store = FakeStore({
        "media_categories": [{"id": 3, "name": "Digital", "order_index": 1}],
        "media_pieces": [{
            "id": 1, "project_id": 7, "category_id": 3, "name": "Banner", "channel": "Instagram",
            "media_type": "online", "start_date": "2025-01-10", "end_date": "2025-01-20",
        }],
        "media_insertions": [{"id": 10, "media_piece_id": 1, "insertion_date": "2025-01-15", "quantity": 2}],
    })
    grid = MediaPlanGrid(store, project_id=7)
    run(grid.load(date(2025, 1, 1), date(2025, 1, 31)))
    return grid, store


def test_begin_requires_day_or_field():
    grid, _ = _grid()
    with pytest.raises(ValueError):
        grid.session.begin(1)
    with pytest.raises(ValueError):
        grid.session.begin(1, day=DAY, field="name")


def test_begin_outside_piece_range():
    grid, _ = _grid()
    with pytest.raises(CellNotEditableError):
        grid.session.begin(1, day=date(2025, 1, 5))
    with pytest.raises(CellNotEditableError):
        grid.session.begin(1, field="id")
    assert grid.session.state is EditState.IDLE


def test_begin_loads_current_value_as_draft():
    grid, _ = _grid()

    grid.session.begin(1, day=DAY)
    assert grid.session.draft == 2

    grid.session.begin(1, field="channel")
    assert grid.session.day is None
    assert grid.session.draft == "Instagram"


def test_begin_on_other_cell_discards_open_draft():
    grid, store = _grid()
    other_day = date(2025, 1, 16)

    async def scenario():
        grid.session.begin(1, day=DAY)
        grid.session.update_draft("7")

        grid.session.begin(1, day=other_day)
        assert (grid.session.day, grid.session.draft) == (other_day, 0)
        await grid.drain()

    run(scenario())

    assert grid.cell_value(1, DAY) == 2
    assert store.writes() == []


def test_confirm_commits_and_closes():
    grid, store = _grid()

    async def scenario():
        grid.session.begin(1, day=DAY)
        task = grid.session.handle(EditTrigger.CONFIRM, "4")
        assert grid.session.state is EditState.IDLE
        assert grid.cell_value(1, DAY) == 4
        await task

    run(scenario())
    assert store.writes() == [("update", "media_insertions", 10, {"quantity": 4})]


def test_blur_with_unchanged_draft_writes_nothing():
    grid, store = _grid()

    async def scenario():
        grid.session.begin(1, day=DAY)
        return grid.session.handle(EditTrigger.BLUR)

    assert run(scenario()) is None
    assert store.writes() == []


def test_invalid_draft_keeps_editing():
    grid, store = _grid()

    async def scenario():
        grid.session.begin(1, day=DAY)
        with pytest.raises(DraftValidationError):
            grid.session.handle(EditTrigger.CONFIRM, "-1")

    run(scenario())

    assert grid.session.is_editing
    assert grid.cell_value(1, DAY) == 2
    assert grid.notifier.history[-1].level == "warning"
    assert store.writes() == []


def test_cancel_discards_draft():
    grid, store = _grid()

    grid.session.begin(1, field="name")
    grid.session.update_draft("Outro nome")
    assert grid.session.handle(EditTrigger.CANCEL) is None

    assert grid.session.state is EditState.IDLE
    assert grid.mirror.get_item(1)["name"] == "Banner"
    assert store.writes() == []


def test_choice_commits_select_value():
    grid, store = _grid()

    async def scenario():
        grid.session.begin(1, field="media_type")
        await grid.session.handle(EditTrigger.CHOICE, "offline")

    run(scenario())
    assert store.writes() == [("update", "media_pieces", 1, {"media_type": "offline"})]


def test_update_draft_requires_open_edit():
    grid, _ = _grid()
    with pytest.raises(GridError):
        grid.session.update_draft("3")
    assert grid.session.commit() is None
