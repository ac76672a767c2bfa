"""Image uploads into local object storage."""
from pathlib import Path

from fastapi.testclient import TestClient

from crackcheck.services.storage import object_key, storage_root

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_upload_images(client: TestClient, auth_headers):
    files = [
        ("files", ("wall.png", PNG, "image/png")),
        ("files", ("ceiling.jpeg", PNG, "image/jpeg")),
    ]
    r = client.post("/api/upload", files=files, headers=auth_headers)
    assert r.status_code == 200, r.text
    j = r.json()
    assert j["message"] == "Files uploaded successfully"
    assert len(j["urls"]) == 2
    url = j["urls"][0]
    assert url.startswith("http://testserver/storage/crack-images/user_1/")
    assert url.endswith(".png")

    # Served back by the /storage mount
    served = client.get(url.replace("http://testserver", ""))
    assert served.status_code == 200
    assert served.content == PNG


def test_upload_rejects_non_images(client: TestClient, auth_headers):
    r = client.post("/api/upload", files=[("files", ("notes.txt", b"hello", "text/plain"))], headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Only image files are allowed"


def test_upload_limits(client: TestClient, auth_headers):
    assert client.post("/api/upload", headers=auth_headers).json()["error"] == "No files provided"
    files = [("files", (f"{i}.png", PNG, "image/png")) for i in range(4)]
    r = client.post("/api/upload", files=files, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Maximum 3 files allowed"


def test_upload_too_large(client: TestClient, auth_headers):
    big = b"\x00" * (10 * 1024 * 1024 + 1)
    r = client.post("/api/upload", files=[("files", ("big.png", big, "image/png"))], headers=auth_headers)
    assert r.status_code == 413


def test_upload_requires_auth(client: TestClient):
    r = client.post("/api/upload", files=[("files", ("wall.png", PNG, "image/png"))])
    assert r.status_code == 401


def test_thumbnail_admin_only(client: TestClient, auth_headers, admin_headers):
    files = {"file": ("cover.webp", PNG, "image/webp")}
    assert client.post("/api/upload/thumbnail", files=files, headers=auth_headers).status_code == 403
    r = client.post("/api/upload/thumbnail", files=files, headers=admin_headers)
    assert r.status_code == 200
    url = r.json()["url"]
    assert "/storage/images/blog_thumbnails/" in url
    key = url.split("/storage/")[1]
    assert (storage_root() / key).read_bytes() == PNG


def test_object_key_extension_fallback():
    assert object_key("u1", "photo.JPG").endswith(".jpg")
    assert object_key("u1", "noext", "image/png").endswith(".png")
    assert object_key("u1", None).endswith(".bin")
    assert Path(object_key("blog_thumbnails", "a.png")).parent.name == "blog_thumbnails"
