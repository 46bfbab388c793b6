"""
Testes de pastas, upload e URLs assinadas de documentos
"""
from urllib.parse import parse_qs, urlparse
from app.models import ProjectDocument

PDF = b"%PDF-1.4\n% memorial\n"


def _folder(client, headers, project, name, parent=None):
    response = client.post(
        f"/api/projects/{project.id}/folders",
        json={"name": name, "parent_folder_id": parent},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


def _upload(client, headers, project, filename="Memorial Descritivo.pdf", content=PDF, **form):
    return client.post(
        f"/api/projects/{project.id}/documents",
        files={"file": (filename, content, "application/pdf")},
        data=form,
        headers=headers,
    )


def test_folder_tree(client, project, user_headers):
    juridico = _folder(client, user_headers, project, "Jurídico")
    _folder(client, user_headers, project, "Contratos", parent=juridico["id"])
    _folder(client, user_headers, project, "Aprovações")

    response = client.get(f"/api/projects/{project.id}/folders", headers=user_headers)

    assert response.status_code == 200
    tree = response.json()
    assert [node["name"] for node in tree] == ["Jurídico", "Aprovações"]
    assert [child["name"] for child in tree[0]["children"]] == ["Contratos"]


def test_move_folder_into_descendant_rejected(client, project, user_headers):
    parent = _folder(client, user_headers, project, "Projetos")
    child = _folder(client, user_headers, project, "Arquitetura", parent=parent["id"])

    response = client.put(
        f"/api/projects/{project.id}/folders/{parent['id']}",
        json={"parent_folder_id": child["id"]},
        headers=user_headers,
    )
    assert response.status_code == 400

    response = client.put(
        f"/api/projects/{project.id}/folders/{parent['id']}",
        json={"parent_folder_id": parent["id"]},
        headers=user_headers,
    )
    assert response.status_code == 400


def test_folder_of_other_project_not_found(client, db, project, user_headers):
    from app.models import Project

    other = Project(name="Edifício Central", company_id=project.company_id)
    db.add(other)
    db.commit()
    folder = _folder(client, user_headers, other, "Fotos")

    response = client.post(
        f"/api/projects/{project.id}/folders",
        json={"name": "Sub", "parent_folder_id": folder["id"]},
        headers=user_headers,
    )
    assert response.status_code == 404


def test_upload_and_list(client, project, storage, user_headers):
    folder = _folder(client, user_headers, project, "Memoriais")

    response = _upload(client, user_headers, project, folder_id=str(folder["id"]), description="Versão final")

    assert response.status_code == 201
    document = response.json()
    assert document["name"] == "Memorial Descritivo.pdf"
    assert document["bucket_name"] == "project-documents"
    assert document["file_path"].startswith(f"{project.id}/")
    assert document["file_path"].endswith("_Memorial_Descritivo.pdf")
    assert document["size"] == len(PDF)
    assert storage.exists(document["bucket_name"], document["file_path"])

    listed = client.get(
        f"/api/projects/{project.id}/documents", params={"folder_id": folder["id"]}, headers=user_headers
    ).json()
    assert [d["id"] for d in listed] == [document["id"]]

    root = client.get(
        f"/api/projects/{project.id}/documents", params={"root_only": True}, headers=user_headers
    ).json()
    assert root == []

    tree = client.get(f"/api/projects/{project.id}/folders", headers=user_headers).json()
    assert tree[0]["document_count"] == 1


def test_upload_rejects_spoofed_pdf(client, project, user_headers):
    response = _upload(client, user_headers, project, content=b"nao sou um pdf")
    assert response.status_code == 400


def test_upload_rejects_extension(client, project, user_headers):
    response = client.post(
        f"/api/projects/{project.id}/documents",
        files={"file": ("script.exe", b"MZ...", "application/octet-stream")},
        headers=user_headers,
    )
    assert response.status_code == 400


def test_signed_url_download(client, project, user_headers):
    document = _upload(client, user_headers, project).json()

    response = client.get(f"/api/documents/{document['id']}/signed-url", headers=user_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["expires_in"] == 3600

    url = urlparse(data["signed_url"])
    assert url.path == "/api/storage/object"
    token = parse_qs(url.query)["token"][0]

    download = client.get("/api/storage/object", params={"token": token})
    assert download.status_code == 200
    assert download.content == PDF


def test_signed_url_tampered_token(client):
    response = client.get("/api/storage/object", params={"token": "invalido"})
    assert response.status_code == 403


def test_document_of_other_company_forbidden(client, db, other_company, project, user_headers):
    from tests.conftest import auth_headers, make_user
    from app.models import AppRole

    document = _upload(client, user_headers, project).json()
    outsider = make_user(db, "fulano@aurora.com.br", [AppRole.COMPANY_ADMIN], company=other_company)

    response = client.get(f"/api/documents/{document['id']}/signed-url", headers=auth_headers(outsider))
    assert response.status_code == 403


def test_delete_document_removes_file(client, db, project, storage, user_headers):
    document = _upload(client, user_headers, project).json()

    response = client.delete(f"/api/documents/{document['id']}", headers=user_headers)

    assert response.status_code == 200
    assert not storage.exists(document["bucket_name"], document["file_path"])
    assert db.query(ProjectDocument).count() == 0


def test_delete_folder_moves_documents_to_root(client, project, user_headers):
    folder = _folder(client, user_headers, project, "Temporária")
    document = _upload(client, user_headers, project, folder_id=str(folder["id"])).json()

    response = client.delete(f"/api/projects/{project.id}/folders/{folder['id']}", headers=user_headers)
    assert response.status_code == 200

    root = client.get(
        f"/api/projects/{project.id}/documents", params={"root_only": True}, headers=user_headers
    ).json()
    assert [d["id"] for d in root] == [document["id"]]
