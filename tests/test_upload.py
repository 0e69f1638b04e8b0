# File: tests/test_upload.py

import inspect
import os

from app.core.config import settings
from app.routers import upload as upload_router
from app.services import storage
from tests.helpers import auth

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def upload(client, user, name="pothole.PNG", content=PNG_BYTES, mimetype="image/png"):
    return client.post("/api/upload", files={"file": (name, content, mimetype)}, headers=auth(user))


def test_upload_stores_file_and_serves_it(client, citizen):
    r = upload(client, citizen)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["mimetype"] == "image/png"
    assert data["size"] == len(PNG_BYTES)
    assert data["original_name"] == "pothole.PNG"
    assert data["filename"].endswith(".png")
    assert data["url"] == f"/uploads/{data['filename']}"
    assert os.path.exists(os.path.join(settings.upload_dir, data["filename"]))

    served = client.get(data["url"])
    assert served.status_code == 200
    assert served.content == PNG_BYTES


def test_uploaded_reference_attaches_to_issue(client, citizen, report):
    ref = upload(client, citizen, name="clip.webm", content=b"webm", mimetype="video/webm").json()["data"]
    issue = report(citizen, evidence=[ref])
    assert issue["evidence"][0]["type"] == "VIDEO"
    assert issue["evidence"][0]["file_path"] == ref["url"]


def test_rejects_other_types(client, citizen):
    r = upload(client, citizen, name="notes.pdf", content=b"%PDF", mimetype="application/pdf")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_FILE_TYPE"


def test_rejects_oversize(client, citizen, monkeypatch):
    monkeypatch.setattr(settings, "max_file_size", 32)
    r = upload(client, citizen)
    assert r.status_code == 413
    assert r.json()["error"]["code"] == "FILE_TOO_LARGE"


def test_upload_route_runs_in_threadpool():
    # storage writes block, so the route must not run on the event loop
    assert not inspect.iscoroutinefunction(upload_router.upload)


def test_upload_requires_login(client, db):
    r = client.post("/api/upload", files={"file": ("a.png", PNG_BYTES, "image/png")})
    assert r.status_code == 401


def test_object_key_keeps_extension_or_falls_back():
    assert storage.make_object_key("photo.JPEG", "image/jpeg").endswith(".jpeg")
    assert storage.make_object_key("no-extension", "image/webp").endswith(".webp")
    assert storage.make_object_key(None, "video/mp4").endswith(".mp4")
    assert storage.make_object_key("a.png", "image/png") != storage.make_object_key("a.png", "image/png")


def test_supabase_used_when_configured(monkeypatch):
    calls = []

    class Response:
        def raise_for_status(self):
            pass

    def fake_post(url, headers, data, timeout):
        calls.append((url, headers["Content-Type"], data))
        return Response()

    monkeypatch.setattr(settings, "supabase_url", "https://demo.supabase.co")
    monkeypatch.setattr(settings, "supabase_service_role", "service-key")
    monkeypatch.setattr(storage.requests, "post", fake_post)

    stored = storage.store(PNG_BYTES, "image/png", "x.png")
    assert stored.url == f"https://demo.supabase.co/storage/v1/object/public/issue-evidence/{stored.filename}"
    assert calls == [(f"https://demo.supabase.co/storage/v1/object/issue-evidence/{stored.filename}",
                      "image/png", PNG_BYTES)]
