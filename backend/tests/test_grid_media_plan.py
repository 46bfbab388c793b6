"""
Testes da grade do plano de mídia (inclui ida e volta pela API real)
"""
from datetime import date
from decimal import Decimal
import httpx
import pytest
from app.core.auth import create_access_token
from app.grid import (
    ApiRemoteStore,
    CellNotEditableError,
    DraftValidationError,
    MediaPlanGrid,
    UNCATEGORIZED,
    month_window,
    parse_quantity,
)
from app.main import app
from app.models import MediaInsertion, MediaPiece
from tests.grid_support import FakeStore, run

DAY = date(2025, 1, 15)


def _store():
    return FakeStore({
        "media_categories": [
            {"id": 3, "name": "Digital", "order_index": 2},
            {"id": 4, "name": "TV", "order_index": 1},
        ],
        "media_pieces": [
            {"id": 1, "project_id": 7, "category_id": 3, "name": "Banner", "channel": "Instagram",
             "media_type": "online", "cost_per_insertion": "100.00",
             "start_date": "2025-01-10", "end_date": "2025-01-20"},
            {"id": 2, "project_id": 7, "category_id": 4, "name": "Comercial 30s", "channel": "Globo",
             "media_type": "offline", "cost_per_insertion": "5000.00",
             "start_date": "2025-01-01", "end_date": "2025-01-31"},
            {"id": 5, "project_id": 7, "category_id": 99, "name": "Panfleto", "channel": "Rua",
             "media_type": "offline", "start_date": "2025-01-01", "end_date": "2025-01-31"},
        ],
        "media_insertions": [
            {"id": 10, "media_piece_id": 1, "insertion_date": "2025-01-15", "quantity": 2},
            {"id": 11, "media_piece_id": 1, "insertion_date": "2025-01-15", "quantity": 1},
            {"id": 12, "media_piece_id": 2, "insertion_date": "2025-01-15", "quantity": 1, "actual_cost": "4200.00"},
            {"id": 13, "media_piece_id": 2, "insertion_date": "2025-01-16", "quantity": 2},
        ],
    })


def _grid(store=None):
    grid = MediaPlanGrid(store or _store(), project_id=7)
    assert run(grid.load_month(DAY))
    return grid


def test_month_window():
    assert month_window(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_window(date(2025, 12, 31)) == (date(2025, 12, 1), date(2025, 12, 31))


@pytest.mark.parametrize("draft,expected", [(None, 0), ("", 0), ("  ", 0), ("7", 7), (" 3 ", 3), (4, 4)])
def test_parse_quantity(draft, expected):
    assert parse_quantity(draft) == expected


@pytest.mark.parametrize("draft", ["-2", "1.5", "abc", -1, True])
def test_parse_quantity_invalid(draft):
    with pytest.raises(DraftValidationError):
        parse_quantity(draft)


def test_load_queries_window():
    store = _store()
    grid = _grid(store)

    assert grid.window == (date(2025, 1, 1), date(2025, 1, 31))
    assert len(grid.days()) == 31
    assert ("query", "media_insertions", {
        "project_id": 7, "start_date": date(2025, 1, 1), "end_date": date(2025, 1, 31),
    }) in store.calls


def test_load_failure_keeps_previous_state():
    store = _store()
    grid = _grid(store)
    store.fail.add(("query", "media_insertions"))

    assert run(grid.load_month(date(2025, 2, 1))) is False

    assert grid.window == (date(2025, 1, 1), date(2025, 1, 31))
    assert grid.cell_value(1, DAY) == 3
    assert grid.notifier.errors[0].title == "Erro ao carregar plano de mídia"


def test_groups_follow_category_order():
    groups = _grid().groups()

    assert [name for name, _ in groups] == ["TV", "Digital", UNCATEGORIZED]
    assert [item["name"] for item in groups[0][1]] == ["Comercial 30s"]


def test_totals_and_spend():
    grid = _grid()

    assert grid.cell_value(1, DAY) == 3
    assert grid.piece_total(2) == 3
    assert grid.day_total(DAY) == 4
    # 3 x 100 + 4200 (realizado) + 2 x 5000
    assert grid.estimated_spend() == Decimal("14500.00")
    assert grid.estimated_spend(1) == Decimal("300.00")


def test_cell_editable_only_inside_piece_range():
    grid = _grid()

    assert grid.is_cell_editable(1, date(2025, 1, 10))
    assert grid.is_cell_editable(1, date(2025, 1, 20))
    assert not grid.is_cell_editable(1, date(2025, 1, 21))
    assert not grid.is_cell_editable(404, DAY)

    with pytest.raises(CellNotEditableError):
        grid.set_cell(1, date(2025, 1, 25), "2")


def test_set_cell_replaces_duplicates():
    grid = _grid()
    store = grid.store

    async def scenario():
        await grid.set_cell(1, DAY, "6")

    run(scenario())

    assert grid.cell_value(1, DAY) == 6
    assert store.writes() == [
        ("update", "media_insertions", 10, {"quantity": 6}),
        ("delete", "media_insertions", 11),
    ]


def test_set_field_validation():
    grid = _grid()

    with pytest.raises(DraftValidationError):
        grid.set_field(1, "end_date", "2025-01-05")
    with pytest.raises(DraftValidationError):
        grid.set_field(1, "name", "   ")
    with pytest.raises(DraftValidationError):
        grid.set_field(1, "cost_per_insertion", "-10")
    with pytest.raises(DraftValidationError):
        grid.set_field(1, "category_id", "42")
    with pytest.raises(CellNotEditableError):
        grid.set_field(1, "project_id", 8)

    assert [n.level for n in grid.notifier.history] == ["warning"] * 4
    assert grid.store.writes() == []


def test_set_field_parses_values():
    grid = _grid()

    async def scenario():
        await grid.set_field(1, "cost_per_insertion", "150,50")
        await grid.set_field(1, "end_date", "2025-01-25")
        assert grid.set_field(1, "schedule_time", "  ") is None

    run(scenario())

    item = grid.mirror.get_item(1)
    assert item["cost_per_insertion"] == Decimal("150.50")
    assert item["end_date"] == date(2025, 1, 25)
    assert grid.store.writes()[:2] == [
        ("update", "media_pieces", 1, {"cost_per_insertion": "150.50"}),
        ("update", "media_pieces", 1, {"end_date": "2025-01-25"}),
    ]


def test_add_piece_defaults_to_window():
    grid = _grid()

    async def scenario():
        temp_id = grid.add_piece(3, "Stories", "Instagram", cost_per_insertion="35")
        assert grid.is_pending(temp_id)
        assert grid.mirror.get_item(temp_id)["start_date"] == date(2025, 1, 1)
        await grid.drain()

    run(scenario())

    (call,) = grid.store.writes()
    assert call[2]["start_date"] == "2025-01-01"
    assert call[2]["end_date"] == "2025-01-31"
    assert call[2]["cost_per_insertion"] == "35"
    assert not grid.is_pending(1001)


def test_add_piece_validation():
    grid = _grid()

    with pytest.raises(DraftValidationError):
        grid.add_piece(3, "", "Instagram")
    with pytest.raises(DraftValidationError):
        grid.add_piece(None, "Stories", "Instagram")
    with pytest.raises(DraftValidationError):
        grid.add_piece(3, "Stories", "Instagram", start_date=date(2025, 1, 20), end_date=date(2025, 1, 10))


def test_delete_piece_cancels_its_edit():
    grid = _grid()

    async def scenario():
        grid.session.begin(1, day=DAY)
        await grid.delete_piece(1)

    run(scenario())

    assert not grid.session.is_editing
    assert grid.mirror.get_item(1) is None
    assert grid.day_total(DAY) == 1


def test_dispose_discards_pending_writes():
    grid = _grid()

    async def scenario():
        task = grid.set_cell(2, DAY, "5")
        grid.dispose()
        await task

    run(scenario())

    assert grid.mirror.items() == []
    assert grid.notifier.history == []


def test_grid_against_api(client, db, project, piece, company_user):
    token = create_access_token({"sub": str(company_user.id)})

    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with ApiRemoteStore("http://testserver", token=token, transport=transport) as store:
            grid = MediaPlanGrid(store, project.id)
            assert await grid.load_month(DAY)
            assert [item["name"] for item in grid.mirror.items()] == ["Banner lançamento"]

            await grid.set_cell(piece.id, DAY, "3")
            rows = db.query(MediaInsertion).all()
            assert [(r.insertion_date, r.quantity) for r in rows] == [(DAY, 3)]
            assert grid.mirror.rows_for_key(piece.id, DAY)[0]["id"] == rows[0].id

            await grid.set_cell(piece.id, DAY, "5")
            assert db.query(MediaInsertion).one().quantity == 5

            await grid.set_cell(piece.id, DAY, "0")
            assert db.query(MediaInsertion).count() == 0

            await grid.set_field(piece.id, "channel", "TikTok")
            db.refresh(piece)
            assert piece.channel == "TikTok"

            temp_id = grid.add_piece(piece.category_id, "Spot 30s", "Rádio Alfa", media_type="offline")
            await grid.drain()
            assert grid.mirror.get_item(temp_id) is None
            assert db.query(MediaPiece).filter(MediaPiece.name == "Spot 30s").one().end_date == date(2025, 1, 31)

            return grid

    grid = run(scenario())
    assert grid.notifier.errors == []


def test_grid_reverts_when_api_rejects(client, db, project, piece, company_user):
    token = create_access_token({"sub": str(company_user.id)})
    piece_id = piece.id

    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with ApiRemoteStore("http://testserver", token=token, transport=transport) as store:
            grid = MediaPlanGrid(store, project.id)
            await grid.load_month(DAY)

            db.delete(piece)
            db.commit()

            await grid.set_cell(piece_id, DAY, "2")
            return grid

    grid = run(scenario())

    assert grid.cell_value(piece_id, DAY) == 0
    assert grid.notifier.errors[0].message == "Peça não encontrada"
