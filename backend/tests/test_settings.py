"""
Testes da identidade visual (branding)
"""
from urllib.parse import urlparse

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_branding_defaults_are_public(client, db):
    response = client.get("/api/settings/branding")

    assert response.status_code == 200
    assert response.json()["allow_theme_toggle"] is True
    assert response.json()["logo_url"] is None


def test_update_branding_invalidates_cache(client, admin_headers):
    client.get("/api/settings/branding")

    response = client.put(
        "/api/settings/branding",
        json={"primary_color_h": 210, "primary_color_s": 80, "allow_theme_toggle": False},
        headers=admin_headers,
    )
    assert response.status_code == 200

    branding = client.get("/api/settings/branding").json()
    assert branding["primary_color_h"] == 210
    assert branding["allow_theme_toggle"] is False


def test_update_branding_validates_colors(client, admin_headers):
    response = client.put("/api/settings/branding", json={"primary_color_h": 400}, headers=admin_headers)
    assert response.status_code == 422


def test_update_branding_requires_lev_admin(client, db, company, user_headers):
    from tests.conftest import auth_headers, make_user
    from app.models import AppRole

    assert client.put("/api/settings/branding", json={}, headers=user_headers).status_code == 403

    gestor = make_user(db, "gestor@horizonte.com.br", [AppRole.COMPANY_ADMIN], company=company)
    assert client.put("/api/settings/branding", json={}, headers=auth_headers(gestor)).status_code == 403


def test_upload_logo_served_publicly(client, admin_headers):
    response = client.post(
        "/api/settings/branding/logo",
        files={"file": ("Logo LEV.png", PNG, "image/png")},
        headers=admin_headers,
    )

    assert response.status_code == 200
    logo_url = response.json()["logo_url"]
    assert logo_url.endswith("_Logo_LEV.png")
    assert client.get("/api/settings/branding").json()["logo_url"] == logo_url

    asset = client.get(urlparse(logo_url).path)
    assert asset.status_code == 200
    assert asset.content == PNG


def test_private_bucket_not_public(client):
    response = client.get("/api/storage/public/project-documents/1/contrato.pdf")
    assert response.status_code == 404
