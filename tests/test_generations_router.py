# /tests/test_generations_router.py

from app.core.config import get_settings
from app.main import app

from conftest import TOKEN_A, TOKEN_B, auth

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64


def _pending(client, token=TOKEN_A) -> dict:
    response = client.post("/api/generations/pending", headers=auth(token))
    assert response.status_code == 200
    return response.json()["generation"]


# --- Identity ---

def test_requests_without_a_session_are_unauthorized(client):
    response = client.post("/api/generations/pending")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"
    assert client.get("/api/style-presets", headers=auth("not-a-session")).status_code == 401


def test_session_cookie_is_accepted(client):
    client.cookies.set("np_session", TOKEN_A)

    assert client.post("/api/generations/pending").status_code == 200


# --- Authoring flow ---

def test_full_authoring_flow(client):
    generation = _pending(client)
    assert generation["status"] == "pending"
    assert generation["style"]["snapshot_title"] == "Readable & Clean"
    assert "snapshot_prompt" not in generation["style"]

    response = client.post(
        f"/api/generations/{generation['id']}/files",
        headers=auth(TOKEN_A),
        files=[("files", ("page.png", PNG, "image/png"))],
    )
    assert response.status_code == 200
    body = response.json()
    (key,) = body["added_keys"]
    assert body["generation"]["input_files"] == [f"/files/{key}"]

    response = client.get(f"/files/{key}", headers=auth(TOKEN_A))
    assert response.status_code == 200
    assert response.content == PNG
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "no-store"
    assert response.headers["content-disposition"].startswith("inline")

    response = client.patch(
        f"/api/generations/{generation['id']}",
        headers=auth(TOKEN_A),
        json={"input_text": "Krebs cycle", "style": {"mode": "custom", "custom_prompt": "make it colorful"}},
    )
    assert response.status_code == 200
    assert response.json()["generation"]["style"] == {
        "mode": "custom",
        "preset_id": None,
        "custom_prompt": "make it colorful",
        "snapshot_title": "Custom",
    }

    response = client.post(f"/api/generations/{generation['id']}/submit", headers=auth(TOKEN_A))
    assert response.status_code == 202
    assert response.json()["ok"] is True
    assert response.json()["generation"]["status"] == "queued"

    response = client.post(f"/api/generations/{generation['id']}/submit", headers=auth(TOKEN_A))
    assert response.status_code == 409
    assert response.json() == {"detail": "Only pending generations can be submitted", "code": "INVALID_STATE"}

    response = client.patch(f"/api/generations/{generation['id']}", headers=auth(TOKEN_A), json={"input_text": "late"})
    assert response.status_code == 409


def test_empty_submit_is_a_validation_error(client):
    generation = _pending(client)

    response = client.post(f"/api/generations/{generation['id']}/submit", headers=auth(TOKEN_A))

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_FAILED"
    assert client.get(f"/api/generations/{generation['id']}", headers=auth(TOKEN_A)).json()["generation"]["status"] == "pending"


def test_patch_requires_something_to_update(client):
    generation = _pending(client)

    response = client.patch(f"/api/generations/{generation['id']}", headers=auth(TOKEN_A), json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid input"


# --- Files ---

def test_oversized_upload_is_rejected_with_413(client, settings):
    generation = _pending(client)
    too_big = b"0" * (settings.max_file_bytes + 1)

    response = client.post(
        f"/api/generations/{generation['id']}/files",
        headers=auth(TOKEN_A),
        files=[("files", ("big.png", too_big, "image/png"))],
    )

    assert response.status_code == 413
    assert response.json()["detail"] == f"File too large. Max is {settings.max_file_bytes} bytes per file."


def test_unsupported_type_is_rejected(client):
    generation = _pending(client)

    response = client.post(
        f"/api/generations/{generation['id']}/files",
        headers=auth(TOKEN_A),
        files=[("files", ("notes.txt", b"hello", "text/plain"))],
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported file type: text/plain"


def test_file_count_ceiling_is_enforced(client, settings):
    generation = _pending(client)
    files = [("files", (f"p{i}.png", PNG, "image/png")) for i in range(settings.max_files_per_generation + 1)]

    response = client.post(f"/api/generations/{generation['id']}/files", headers=auth(TOKEN_A), files=files)

    assert response.status_code == 400
    assert client.get(f"/api/generations/{generation['id']}", headers=auth(TOKEN_A)).json()["generation"]["input_files"] == []


def test_detach_file_by_url(client):
    generation = _pending(client)
    body = client.post(
        f"/api/generations/{generation['id']}/files",
        headers=auth(TOKEN_A),
        files=[("files", ("page.png", PNG, "image/png"))],
    ).json()
    url = body["generation"]["input_files"][0]

    response = client.delete(
        f"/api/generations/{generation['id']}/files", headers=auth(TOKEN_A), params={"file_key": url}
    )

    assert response.status_code == 200
    assert response.json()["removed_key"] == body["added_keys"][0]
    assert response.json()["generation"]["input_files"] == []
    assert client.get(url, headers=auth(TOKEN_A)).status_code == 404


def test_added_key_works_as_detach_handle(client):
    generation = _pending(client)
    body = client.post(
        f"/api/generations/{generation['id']}/files",
        headers=auth(TOKEN_A),
        files=[("files", ("page.png", PNG, "image/png"))],
    ).json()
    (key,) = body["added_keys"]
    assert key not in body["generation"]["input_files"]

    response = client.delete(
        f"/api/generations/{generation['id']}/files", headers=auth(TOKEN_A), params={"file_key": key}
    )

    assert response.status_code == 200
    assert response.json()["removed_key"] == key
    assert response.json()["generation"]["input_files"] == []


def test_file_route_ownership_check_is_configurable(client, settings):
    generation = _pending(client)
    body = client.post(
        f"/api/generations/{generation['id']}/files",
        headers=auth(TOKEN_A),
        files=[("files", ("page.png", PNG, "image/png"))],
    ).json()
    url = body["generation"]["input_files"][0]

    # Default: any authenticated caller can read the bytes.
    assert client.get(url, headers=auth(TOKEN_B)).status_code == 200

    app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"files_require_ownership": True})
    assert client.get(url, headers=auth(TOKEN_B)).status_code == 404
    assert client.get(url, headers=auth(TOKEN_A)).status_code == 200


# --- Ownership ---

def test_other_owner_sees_not_found_everywhere(client):
    generation = _pending(client, TOKEN_A)
    gid = generation["id"]
    headers = auth(TOKEN_B)

    assert client.get(f"/api/generations/{gid}", headers=headers).status_code == 404
    assert client.patch(f"/api/generations/{gid}", headers=headers, json={"input_text": "x"}).status_code == 404
    assert client.post(f"/api/generations/{gid}/submit", headers=headers).status_code == 404
    assert client.put(f"/api/generations/{gid}/favourite", headers=headers, json={"value": True}).status_code == 404
    assert client.delete(f"/api/generations/{gid}", headers=headers).status_code == 404
    assert client.post(
        f"/api/generations/{gid}/files", headers=headers, files=[("files", ("p.png", PNG, "image/png"))]
    ).status_code == 404

    assert client.get(f"/api/generations/{gid}", headers=auth(TOKEN_A)).status_code == 200


# --- Flags, listing and delete ---

def test_flags_listing_and_delete(client):
    generation = _pending(client)
    gid = generation["id"]
    client.patch(f"/api/generations/{gid}", headers=auth(TOKEN_A), json={"input_text": "Mitochondria\npowerhouse"})

    response = client.put(f"/api/generations/{gid}/favourite", headers=auth(TOKEN_A), json={"value": True})
    assert response.json()["generation"]["is_favourite"] is True
    response = client.put(f"/api/generations/{gid}/downloaded", headers=auth(TOKEN_A), json={"value": True})
    assert response.json()["generation"]["is_downloaded"] is True

    listing = client.get("/api/generations", headers=auth(TOKEN_A), params={"q": "mitochondria"}).json()
    assert listing["total"] == 1
    assert listing["items"][0]["title"] == "Mitochondria"
    assert listing["hasNextPage"] is False
    assert client.get("/api/generations", headers=auth(TOKEN_B)).json()["total"] == 0
    assert client.get("/api/generations", headers=auth(TOKEN_A), params={"page_size": 51}).status_code == 400

    assert client.delete(f"/api/generations/{gid}", headers=auth(TOKEN_A)).status_code == 204
    assert client.get(f"/api/generations/{gid}", headers=auth(TOKEN_A)).status_code == 404


# --- Catalog, dashboard and health ---

def test_style_presets_hide_prompts(client, presets):
    response = client.get("/api/style-presets", headers=auth(TOKEN_A))

    assert response.status_code == 200
    presets_out = response.json()["presets"]
    assert [p["key"] for p in presets_out] == ["readable_clean", "colorful_visual"]
    assert all("prompt" not in p for p in presets_out)


def test_dashboard_clamps_days(client):
    _pending(client)

    response = client.get("/api/dashboard", headers=auth(TOKEN_A), params={"days": 400})

    assert response.status_code == 200
    body = response.json()
    assert body["period_days"] == 90
    assert body["metrics"]["generations_last_period"] == 1
    assert body["metrics"]["active_styles"] == 2


def test_health_check(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["version"] == "1.0.0"
