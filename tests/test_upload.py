def test_upload_course_image(client, instructor, auth_header, s3):
    r = client.post(
        "/api/upload",
        headers=auth_header(instructor),
        files={"image": ("cover.png", b"\x89PNG fake", "image/png")},
    )
    assert r.status_code == 200, r.text
    [upload] = s3.uploads
    assert upload["key"].startswith("course-images/")
    assert upload["key"].endswith(".png")
    assert upload["body"] == b"\x89PNG fake"
    assert r.json()["url"].endswith(upload["key"])


def test_upload_certificate(client, instructor, auth_header, s3):
    r = client.post(
        "/api/upload",
        params={"target": "certificate"},
        headers=auth_header(instructor),
        files={"image": ("cert.jpg", b"jpeg bytes", "image/jpeg")},
    )
    assert r.status_code == 200, r.text
    assert s3.uploads[0]["key"].startswith("certificates/")


def test_upload_rejects_non_images(client, instructor, auth_header, s3):
    r = client.post(
        "/api/upload",
        headers=auth_header(instructor),
        files={"image": ("notes.pdf", b"%PDF", "application/pdf")},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Only image files are allowed!"
    assert s3.uploads == []


def test_upload_rejects_large_files(client, instructor, auth_header, s3):
    too_big = b"0" * (5 * 1024 * 1024 + 1)
    r = client.post(
        "/api/upload",
        headers=auth_header(instructor),
        files={"image": ("huge.png", too_big, "image/png")},
    )
    assert r.status_code == 400
    assert s3.uploads == []


def test_upload_without_file(client, instructor, auth_header, s3):
    r = client.post("/api/upload", headers=auth_header(instructor))
    assert r.status_code == 400
    assert r.json()["detail"] == "No file uploaded"


def test_upload_requires_login(client, s3):
    r = client.post("/api/upload", files={"image": ("cover.png", b"png", "image/png")})
    assert r.status_code == 401


def test_profile_picture_upload(client, student, auth_header, s3):
    r = client.post(
        "/api/users/profile/picture",
        headers=auth_header(student),
        files={"profile_picture": ("me.gif", b"GIF89a", "image/gif")},
    )
    assert r.status_code == 200, r.text
    assert r.json()["profile_picture"].endswith(s3.uploads[0]["key"])
    assert s3.uploads[0]["key"].startswith("profile-pictures/")

    r = client.post(
        "/api/users/profile/picture",
        headers=auth_header(student),
        files={"profile_picture": ("me.webp", b"RIFF", "image/webp")},
    )
    assert r.status_code == 400
