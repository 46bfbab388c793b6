"""
Testes das rotas do plano de mídia: peças, inserções e orçamento
"""
from datetime import date
from app.models import MediaInsertion, MediaPiece


def _insert(db, piece, day, quantity, actual_cost=None):
    row = MediaInsertion(media_piece_id=piece.id, insertion_date=day, quantity=quantity, actual_cost=actual_cost)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _upsert(client, headers, piece, day, quantity):
    return client.put(
        "/api/media/insertions/upsert",
        json={"media_piece_id": piece.id, "insertion_date": day, "quantity": quantity},
        headers=headers,
    )


def test_categories_ordered(client, db, category, user_headers):
    from app.models import MediaCategory

    db.add(MediaCategory(name="TV", order_index=0))
    db.commit()

    names = [c["name"] for c in client.get("/api/media/categories", headers=user_headers).json()]
    assert names == ["TV", "Digital"]


def test_only_lev_creates_categories(client, user_headers, admin_headers):
    assert client.post("/api/media/categories", json={"name": "Rádio"}, headers=user_headers).status_code == 403
    assert client.post("/api/media/categories", json={"name": "Rádio"}, headers=admin_headers).status_code == 201
    assert client.post("/api/media/categories", json={"name": "Rádio"}, headers=admin_headers).status_code == 400


def test_create_piece(client, project, category, user_headers):
    response = client.post(
        "/api/media/pieces",
        json={
            "project_id": project.id,
            "category_id": category.id,
            "name": "Vídeo institucional",
            "channel": "YouTube",
            "cost_per_insertion": "250.00",
            "start_date": "2025-02-01",
            "end_date": "2025-02-28",
        },
        headers=user_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["category_name"] == "Digital"
    assert data["media_type"] == "online"
    assert data["piece_type"] == ""


def test_create_piece_invalid_range(client, project, category, user_headers):
    response = client.post(
        "/api/media/pieces",
        json={
            "project_id": project.id,
            "category_id": category.id,
            "name": "Outdoor",
            "channel": "Av. Paulista",
            "start_date": "2025-03-10",
            "end_date": "2025-03-01",
        },
        headers=user_headers,
    )
    assert response.status_code == 400


def test_update_piece_validates_resulting_range(client, piece, user_headers):
    response = client.put(f"/api/media/pieces/{piece.id}", json={"start_date": "2025-02-15"}, headers=user_headers)
    assert response.status_code == 400

    response = client.put(f"/api/media/pieces/{piece.id}", json={"name": ""}, headers=user_headers)
    assert response.status_code == 400

    response = client.put(
        f"/api/media/pieces/{piece.id}", json={"channel": "TikTok", "end_date": "2025-02-15"}, headers=user_headers
    )
    assert response.status_code == 200
    assert response.json()["channel"] == "TikTok"


def test_delete_piece_cascades(client, db, piece, user_headers):
    _insert(db, piece, date(2025, 1, 10), 2)

    response = client.delete(f"/api/media/pieces/{piece.id}", headers=user_headers)

    assert response.status_code == 200
    assert db.query(MediaPiece).count() == 0
    assert db.query(MediaInsertion).count() == 0


def test_insertion_outside_piece_range(client, piece, user_headers):
    response = client.post(
        "/api/media/insertions",
        json={"media_piece_id": piece.id, "insertion_date": "2025-02-01", "quantity": 1},
        headers=user_headers,
    )
    assert response.status_code == 400


def test_insertion_zero_quantity_rejected(client, piece, user_headers):
    response = client.post(
        "/api/media/insertions",
        json={"media_piece_id": piece.id, "insertion_date": "2025-01-10", "quantity": 0},
        headers=user_headers,
    )
    assert response.status_code == 422


def test_list_insertions_window(client, db, project, piece, user_headers):
    _insert(db, piece, date(2025, 1, 5), 1)
    _insert(db, piece, date(2025, 1, 20), 3)

    response = client.get(
        "/api/media/insertions",
        params={"project_id": project.id, "start_date": "2025-01-10", "end_date": "2025-01-31"},
        headers=user_headers,
    )

    assert response.status_code == 200
    assert [(i["insertion_date"], i["quantity"]) for i in response.json()] == [("2025-01-20", 3)]


def test_list_insertions_requires_filter(client, user_headers):
    assert client.get("/api/media/insertions", headers=user_headers).status_code == 400


def test_upsert_lifecycle(client, db, piece, user_headers):
    created = _upsert(client, user_headers, piece, "2025-01-15", 3)
    assert created.json()["action"] == "created"
    assert created.json()["insertion"]["quantity"] == 3

    updated = _upsert(client, user_headers, piece, "2025-01-15", 5)
    assert updated.json()["action"] == "updated"
    assert updated.json()["insertion"]["id"] == created.json()["insertion"]["id"]

    deleted = _upsert(client, user_headers, piece, "2025-01-15", 0)
    assert deleted.json() == {"action": "deleted", "insertion": None}
    assert db.query(MediaInsertion).count() == 0

    unchanged = _upsert(client, user_headers, piece, "2025-01-15", 0)
    assert unchanged.json()["action"] == "unchanged"


def test_upsert_consolidates_duplicates(client, db, piece, user_headers):
    first = _insert(db, piece, date(2025, 1, 8), 1)
    _insert(db, piece, date(2025, 1, 8), 2)

    response = _upsert(client, user_headers, piece, "2025-01-08", 4)

    assert response.json()["action"] == "updated"
    rows = db.query(MediaInsertion).all()
    assert [(r.id, r.quantity) for r in rows] == [(first.id, 4)]


def test_upsert_outside_range(client, piece, user_headers):
    assert _upsert(client, user_headers, piece, "2025-03-01", 1).status_code == 400


def test_budget_summary(client, db, project, piece, user_headers):
    _insert(db, piece, date(2025, 1, 10), 3)
    _insert(db, piece, date(2025, 1, 11), 1, actual_cost=80)

    response = client.put(
        f"/api/media/projects/{project.id}/budgets",
        json={"month_year": "2025-01-20", "budgeted_amount": "300.00"},
        headers=user_headers,
    )
    assert response.status_code == 200
    assert response.json()["month_year"] == "2025-01-01"
    assert float(response.json()["actual_amount"]) == 380.0

    summary = client.get(
        f"/api/media/projects/{project.id}/budget-summary",
        params={"month_year": "2025-01-01"},
        headers=user_headers,
    ).json()

    assert summary["total_insertions"] == 4
    assert float(summary["remaining"]) == -80.0
    assert summary["over_budget"] is True
    assert summary["percentage_used"] == 126.7


def test_budget_replaced_not_duplicated(client, project, user_headers):
    for amount in ("100.00", "200.00"):
        client.put(
            f"/api/media/projects/{project.id}/budgets",
            json={"month_year": "2025-02-01", "budgeted_amount": amount},
            headers=user_headers,
        )

    budgets = client.get(f"/api/media/projects/{project.id}/budgets", headers=user_headers).json()
    assert len(budgets) == 1
    assert float(budgets[0]["budgeted_amount"]) == 200.0
