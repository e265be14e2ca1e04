from ippl import storage


def test_upload_audio(pro):
    r = pro.post("/api/upload/audio", files={"audio": ("nota.webm", b"\x1aE\xdf\xa3 fake webm", "audio/webm")})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["url"] == body["audioUrl"]
    assert body["url"].startswith("/uploads/audios/") and body["url"].endswith(".webm")
    assert body["mimetype"] == "audio/webm"
    assert pro.get(body["url"]).content == b"\x1aE\xdf\xa3 fake webm"


def test_upload_audio_only_webm(pro):
    r = pro.post("/api/upload/audio", files={"audio": ("nota.mp3", b"ID3", "audio/mpeg")})
    assert r.status_code == 400
    assert r.json()["detail"] == "Solo se permite formato WebM"


def test_upload_audio_requires_login(anon):
    r = anon.post("/api/upload/audio", files={"audio": ("nota.webm", b"x", "audio/webm")})
    assert r.status_code == 401


def test_carousel_lifecycle(editor, anon):
    r = editor.post("/api/upload/carousel", files={"image": ("banner.JPG", b"fake jpg", "image/jpeg")})
    assert r.status_code == 200
    name = r.json()["filename"]
    assert name.endswith(".jpg")
    assert r.json()["url"] == f"/images/carousel/{name}"
    assert anon.get(r.json()["url"]).status_code == 200

    assert name in anon.get("/api/content/carousel").json()

    assert anon.delete(f"/api/content/carousel/{name}").status_code == 401
    assert editor.delete(f"/api/content/carousel/{name}").status_code == 200
    assert name not in anon.get("/api/content/carousel").json()
    assert editor.delete(f"/api/content/carousel/{name}").status_code == 404


def test_carousel_rejects_non_images(editor, pro):
    r = editor.post("/api/upload/carousel", files={"image": ("doc.pdf", b"%PDF", "application/pdf")})
    assert r.status_code == 400
    r = pro.post("/api/upload/carousel", files={"image": ("a.png", b"png", "image/png")})
    assert r.status_code == 403


def test_carousel_delete_rejects_traversal(editor):
    r = editor.delete("/api/content/carousel/..secreto.png")
    assert r.status_code == 400
    assert r.json()["detail"] == "Nombre de archivo no válido."


def test_upload_size_limit(pro, monkeypatch):
    monkeypatch.setattr(storage, "MAX_UPLOAD_BYTES", 8)
    r = pro.post("/api/upload/audio", files={"audio": ("nota.webm", b"123456789", "audio/webm")})
    assert r.status_code == 400
    assert r.json()["detail"].startswith("El archivo supera el límite")

    r = pro.post("/api/upload/audio", files={"audio": ("nota.webm", b"12345678", "audio/webm")})
    assert r.status_code == 200
