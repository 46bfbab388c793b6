"""
Testes de contas a receber, contas a pagar e resumo financeiro
"""
from app.models import ContaReceber, StatusContaReceber

LOTE = {
    "base_cobranca": "mensal",
    "valor_cobranca": "1000.00",
    "tipo_cobranca": "pos-pago",
    "data_inicio": "2025-01-05",
    "data_fim": "2025-03-05",
    "dia_pagamento": 10,
    "dia_emissao_nota": 5,
    "contato_email": "financeiro@horizonte.com.br",
}

PAGAMENTO = {"valor_pago": "1000.00", "data_pagamento": "2025-01-10", "forma_pagamento": "pix"}


def _create_lote(client, headers, company, project, **overrides):
    payload = {**LOTE, "company_id": company.id, "project_id": project.id, **overrides}
    return client.post("/api/financial/contas-receber/lotes", json=payload, headers=headers)


def test_preview_receber(client, user_headers):
    response = client.post(
        "/api/financial/contas-receber/preview",
        json={"base_cobranca": "bimestral", "data_inicio": "2025-01-01", "data_fim": "2025-12-31"},
        headers=user_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_registros"] == 6
    assert data["datas"][1] == "2025-03-01"


def test_create_lote_generates_one_row_per_date(client, db, company, project, user_headers):
    response = _create_lote(client, user_headers, company, project)

    assert response.status_code == 201
    assert response.json()["total_registros"] == 3

    contas = db.query(ContaReceber).order_by(ContaReceber.data_cobranca).all()
    assert [c.data_cobranca.isoformat() for c in contas] == ["2025-01-05", "2025-02-05", "2025-03-05"]
    assert all(c.status == StatusContaReceber.PENDENTE for c in contas)


def test_create_lote_invalid_period(client, company, project, user_headers):
    response = _create_lote(client, user_headers, company, project, data_fim="2024-12-01")
    assert response.status_code == 422


def test_create_lote_project_of_other_company(client, company, other_company, project, admin_headers):
    response = _create_lote(client, admin_headers, other_company, project)
    assert response.status_code == 400


def test_list_marks_overdue(client, company, project, user_headers):
    _create_lote(client, user_headers, company, project)

    response = client.get("/api/financial/contas-receber", params={"vencidas": True}, headers=user_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert all(item["vencida"] for item in data["items"])
    assert data["items"][0]["project_name"] == project.name


def test_payment_and_locked_edit(client, company, project, user_headers):
    lote_id = _create_lote(client, user_headers, company, project).json()["id"]
    contas = client.get("/api/financial/contas-receber", params={"lote_id": lote_id}, headers=user_headers).json()["items"]
    conta_id = contas[0]["id"]

    paid = client.post(f"/api/financial/contas-receber/{conta_id}/pagamento", json=PAGAMENTO, headers=user_headers)
    assert paid.status_code == 200
    assert paid.json()["status"] == "paga"
    assert paid.json()["vencida"] is False

    again = client.post(f"/api/financial/contas-receber/{conta_id}/pagamento", json=PAGAMENTO, headers=user_headers)
    assert again.status_code == 400

    edit = client.put(f"/api/financial/contas-receber/{conta_id}", json={"descricao": "ajuste"}, headers=user_headers)
    assert edit.status_code == 400

    # lote com conta paga não pode ser excluído
    delete = client.delete(f"/api/financial/contas-receber/lotes/{lote_id}", headers=user_headers)
    assert delete.status_code == 400


def test_delete_lote_removes_rows(client, db, company, project, user_headers):
    lote_id = _create_lote(client, user_headers, company, project).json()["id"]

    response = client.delete(f"/api/financial/contas-receber/lotes/{lote_id}", headers=user_headers)

    assert response.status_code == 200
    assert db.query(ContaReceber).count() == 0


def test_other_company_cannot_see_receivables(client, db, other_company, company, project, admin_headers):
    from tests.conftest import auth_headers, make_user
    from app.models import AppRole

    _create_lote(client, admin_headers, company, project)
    outsider = make_user(db, "fulano@aurora.com.br", [AppRole.COMPANY_USER], company=other_company)

    response = client.get("/api/financial/contas-receber", headers=auth_headers(outsider))
    assert response.json()["total"] == 0


def test_create_contas_pagar(client, project, user_headers):
    response = client.post(
        "/api/financial/contas-pagar",
        json={
            "project_id": project.id,
            "base_cobranca": "mensal",
            "tipo_pagamento": "pre-pago",
            "valor_despesa": "250.00",
            "data_inicio": "2025-01-15",
            "data_fim": "2025-03-10",
            "dia_pagamento": 31,
            "fornecedor_nome": "Gráfica Central",
        },
        headers=user_headers,
    )

    assert response.status_code == 201
    vencimentos = [c["data_vencimento"] for c in response.json()]
    assert vencimentos == ["2025-01-31", "2025-02-28", "2025-03-31"]


def test_summary(client, company, project, user_headers):
    lote_id = _create_lote(client, user_headers, company, project).json()["id"]
    contas = client.get("/api/financial/contas-receber", params={"lote_id": lote_id}, headers=user_headers).json()["items"]
    client.post(f"/api/financial/contas-receber/{contas[0]['id']}/pagamento", json=PAGAMENTO, headers=user_headers)

    client.post(
        "/api/financial/contas-pagar",
        json={
            "project_id": project.id,
            "base_cobranca": "mensal",
            "tipo_pagamento": "pos-pago",
            "valor_despesa": "300.00",
            "data_inicio": "2025-01-01",
            "data_fim": "2025-01-31",
            "dia_pagamento": 20,
        },
        headers=user_headers,
    )

    summary = client.get("/api/financial/summary", headers=user_headers).json()

    assert summary["receber"]["quantidade_paga"] == 1
    assert summary["receber"]["quantidade_pendente"] == 2
    assert float(summary["receber"]["pendente"]) == 2000.0
    assert float(summary["pagar"]["pendente"]) == 300.0
    assert float(summary["saldo_previsto"]) == 1700.0
