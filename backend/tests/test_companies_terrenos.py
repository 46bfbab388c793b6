"""
Testes de grupos econômicos e terrenos (land bank)
"""
from app.models import Project, Terreno, TerrenoStatus

COMPANY_PAYLOAD = {
    "razao_social": "Incorporadora Vale Verde Ltda",
    "nome_comercial": "Vale Verde",
    "cnpj": "12.345.678/0001-95",
    "email": "contato@valeverde.com.br",
    "estado": "mg",
}


def test_create_company_normalizes_cnpj(client, admin_headers):
    response = client.post("/api/companies", json=COMPANY_PAYLOAD, headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["cnpj"] == "12345678000195"
    assert data["estado"] == "MG"
    assert data["status"] == "active"
    assert data["total_projetos"] == 0


def test_create_company_invalid_cnpj(client, admin_headers):
    response = client.post("/api/companies", json={**COMPANY_PAYLOAD, "cnpj": "123"}, headers=admin_headers)
    assert response.status_code == 422


def test_create_company_duplicate_cnpj(client, admin_headers):
    client.post("/api/companies", json=COMPANY_PAYLOAD, headers=admin_headers)
    response = client.post("/api/companies", json=COMPANY_PAYLOAD, headers=admin_headers)
    assert response.status_code == 400


def test_only_lev_manages_companies(client, user_headers):
    response = client.post("/api/companies", json=COMPANY_PAYLOAD, headers=user_headers)
    assert response.status_code == 403


def test_company_user_sees_only_own_company(client, company, other_company, user_headers):
    response = client.get("/api/companies", headers=user_headers)

    assert response.status_code == 200
    assert [c["id"] for c in response.json()["items"]] == [company.id]

    assert client.get(f"/api/companies/{other_company.id}", headers=user_headers).status_code == 403


def test_search_company_by_cnpj(client, company, other_company, admin_headers):
    response = client.get("/api/companies", params={"search": "11.222"}, headers=admin_headers)
    assert [c["id"] for c in response.json()["items"]] == [company.id]


def test_delete_company_with_projects_blocked(client, db, company, admin_headers):
    db.add(Project(name="Torre Norte", company_id=company.id, order_index=0))
    db.commit()

    response = client.delete(f"/api/companies/{company.id}", headers=admin_headers)

    assert response.status_code == 400
    assert "1 projeto(s)" in response.json()["detail"]


def test_delete_company(client, other_company, admin_headers):
    response = client.delete(f"/api/companies/{other_company.id}", headers=admin_headers)
    assert response.status_code == 200


def test_create_terreno(client, company, user_headers):
    response = client.post(
        "/api/terrenos",
        json={
            "company_id": company.id,
            "nome": "Gleba Sul",
            "area": "12500.50",
            "estado": "sp",
            "latitude": -23.55,
            "longitude": -46.63,
        },
        headers=user_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["estado"] == "SP"
    assert data["status"] == "available"


def test_create_terreno_invalid_area(client, company, user_headers):
    response = client.post(
        "/api/terrenos",
        json={"company_id": company.id, "nome": "Gleba Sul", "area": 0},
        headers=user_headers,
    )
    assert response.status_code == 422


def test_terreno_other_company_forbidden(client, other_company, user_headers):
    response = client.post(
        "/api/terrenos",
        json={"company_id": other_company.id, "nome": "Gleba Leste", "area": 100},
        headers=user_headers,
    )
    assert response.status_code == 403


def test_update_terreno_cannot_clear_required_field(client, db, company, user_headers):
    terreno = Terreno(company_id=company.id, nome="Lote 7", area=500, status=TerrenoStatus.AVAILABLE)
    db.add(terreno)
    db.commit()

    response = client.put(f"/api/terrenos/{terreno.id}", json={"nome": None}, headers=user_headers)
    assert response.status_code == 400

    response = client.put(f"/api/terrenos/{terreno.id}", json={"status": "negotiating"}, headers=user_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "negotiating"


def test_list_terrenos_filters(client, db, company, user_headers):
    db.add_all([
        Terreno(company_id=company.id, nome="Chácara Norte", area=1000, status=TerrenoStatus.AVAILABLE),
        Terreno(company_id=company.id, nome="Fazenda Sul", area=9000, status=TerrenoStatus.ACQUIRED),
    ])
    db.commit()

    response = client.get("/api/terrenos", params={"status": "acquired"}, headers=user_headers)
    assert [t["nome"] for t in response.json()["items"]] == ["Fazenda Sul"]

    response = client.get("/api/terrenos", params={"search": "norte"}, headers=user_headers)
    assert response.json()["total"] == 1
