import json
from pathlib import Path


def _register(client, *, email: str, role: str, name: str = "Test User", files=None, **fields):
    form = {"name": name, "email": email, "phone": "555-0100", "role": role}
    if role == "employer":
        form.setdefault("companyName", "Acme")
        form.setdefault("companyLocation", "Berlin")
    form.update(fields)
    return client.post("/api/auth/register", data=form, files=files)


def _login(client, *, email: str):
    return client.post("/api/auth/login", json={"email": email})


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_register_employer_success(client, store):
    r = _register(
        client,
        email="boss@example.com",
        role="employer",
        companyDescription="We make <b>anvils</b>",
    )
    assert r.status_code == 201, r.text
    data = r.json()
    user = data["user"]
    assert user["role"] == "employer"
    assert user["companyName"] == "Acme"
    assert user["companyLocation"] == "Berlin"
    assert user["companyDescription"] == "We make anvils"
    assert user["photo"] is None
    assert "experiences" not in user
    assert isinstance(data["accessToken"], str) and len(data["accessToken"]) > 10
    assert isinstance(data["refreshToken"], str) and len(data["refreshToken"]) > 10

    stored = store.get_user(user["id"])
    assert stored.email == "boss@example.com"
    assert store.has_refresh_token(data["refreshToken"], user["id"])


def test_register_employee_with_experiences(client):
    experiences = [{"company": "Initech", "position": "Engineer", "years": 3}]
    r = _register(client, email="worker@example.com", role="employee", experiences=json.dumps(experiences))
    assert r.status_code == 201, r.text
    user = r.json()["user"]
    assert user["role"] == "employee"
    assert user["experiences"] == [{"company": "Initech", "position": "Engineer", "years": 3.0}]
    assert "companyName" not in user


def test_register_employee_experiences_optional(client):
    r = _register(client, email="fresh@example.com", role="employee")
    assert r.status_code == 201, r.text
    assert r.json()["user"]["experiences"] == []


def test_register_requires_core_fields(client):
    r = client.post("/api/auth/register", data={"name": "No Email", "phone": "1", "role": "employee"})
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Name, email, phone, and role are required"


def test_register_rejects_unknown_role(client):
    r = _register(client, email="admin@example.com", role="admin")
    assert r.status_code == 400, r.text
    assert "employer" in r.json()["error"]


def test_register_rejects_invalid_email(client):
    r = _register(client, email="not-an-email", role="employee")
    assert r.status_code == 400, r.text
    assert "email" in r.json()["error"].lower()


def test_register_employer_requires_company(client):
    r = _register(client, email="boss2@example.com", role="employer", companyName="", companyLocation="")
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Company name and location are required for employers"


def test_register_rejects_malformed_experiences(client):
    r = _register(client, email="bad@example.com", role="employee", experiences="{not json")
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Invalid experiences format"


def test_duplicate_email_is_a_conflict_and_keeps_one_record(client, store):
    first = _register(client, email="dup@example.com", role="employee")
    assert first.status_code == 201, first.text

    second = _register(client, email="DUP@example.com", role="employer", name="Other")
    assert second.status_code == 400, second.text
    assert "already exists" in second.json()["error"]

    matching = [u for u in store.list_users() if u.email == "dup@example.com"]
    assert len(matching) == 1
    assert matching[0].role == "employee"


def test_register_with_photo_is_served_from_uploads(client):
    png = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
    r = _register(
        client,
        email="pic@example.com",
        role="employee",
        files={"photo": ("me.png", png, "image/png")},
    )
    assert r.status_code == 201, r.text
    photo = r.json()["user"]["photo"]
    assert photo.startswith("/uploads/") and photo.endswith("-me.png")

    served = client.get(photo)
    assert served.status_code == 200
    assert served.content == png


def test_register_rejects_non_image_photo(client, store):
    r = _register(
        client,
        email="txt@example.com",
        role="employee",
        files={"photo": ("notes.txt", b"hello", "text/plain")},
    )
    assert r.status_code == 400, r.text
    assert store.get_user_by_email("txt@example.com") is None


def test_login_success_returns_profile_and_tokens(client):
    _register(client, email="login@example.com", role="employer")
    r = _login(client, email="  Login@Example.com ")
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["message"] == "Login successful"
    assert data["user"]["email"] == "login@example.com"
    assert data["user"]["companyName"] == "Acme"
    assert data["accessToken"] and data["refreshToken"]


def test_login_unknown_email_is_404(client):
    r = _login(client, email="ghost@example.com")
    assert r.status_code == 404, r.text
    assert r.json()["error"] == "User not found"


def test_login_requires_email(client):
    r = client.post("/api/auth/login", json={})
    assert r.status_code == 400, r.text


def test_refresh_issues_new_access_token(client):
    tokens = _register(client, email="refresh@example.com", role="employee").json()
    r = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert r.status_code == 200, r.text
    access = r.json()["accessToken"]

    me = client.get(f"/api/users/{tokens['user']['id']}", headers=_auth_headers(access))
    assert me.status_code == 200, me.text


def test_refresh_requires_token(client):
    r = client.post("/api/auth/refresh", json={})
    assert r.status_code == 400, r.text


def test_refresh_rejects_garbage_and_access_tokens(client):
    tokens = _register(client, email="mixup@example.com", role="employee").json()
    assert client.post("/api/auth/refresh", json={"refreshToken": "garbage"}).status_code == 401
    r = client.post("/api/auth/refresh", json={"refreshToken": tokens["accessToken"]})
    assert r.status_code == 401, r.text


def test_logout_revokes_refresh_token(client, store):
    tokens = _register(client, email="bye@example.com", role="employee").json()
    r = client.post(
        "/api/auth/logout",
        json={"refreshToken": tokens["refreshToken"]},
        headers=_auth_headers(tokens["accessToken"]),
    )
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Logged out successfully"

    again = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert again.status_code == 401, again.text


def test_logout_requires_authentication(client):
    r = client.post("/api/auth/logout", json={})
    assert r.status_code == 401, r.text


def test_logout_cannot_revoke_someone_elses_token(client, store):
    victim = _register(client, email="victim@example.com", role="employee").json()
    attacker = _register(client, email="attacker@example.com", role="employee").json()
    client.post(
        "/api/auth/logout",
        json={"refreshToken": victim["refreshToken"]},
        headers=_auth_headers(attacker["accessToken"]),
    )
    assert store.has_refresh_token(victim["refreshToken"], victim["user"]["id"])


def test_logout_all_revokes_every_session(client, store):
    first = _register(client, email="multi@example.com", role="employee").json()
    second = _login(client, email="multi@example.com").json()

    r = client.post("/api/auth/logout-all", headers=_auth_headers(first["accessToken"]))
    assert r.status_code == 200, r.text
    assert r.json()["revoked"] == 2

    for token in (first["refreshToken"], second["refreshToken"]):
        assert client.post("/api/auth/refresh", json={"refreshToken": token}).status_code == 401


def test_uploaded_photo_lands_in_upload_dir(client):
    from backend.jobboard import config

    r = _register(
        client,
        email="disk@example.com",
        role="employee",
        files={"photo": ("face.jpg", b"\xff\xd8\xff\xe0jpeg", "image/jpeg")},
    )
    assert r.status_code == 201, r.text
    name = Path(r.json()["user"]["photo"]).name
    assert (Path(config.UPLOAD_DIR) / name).read_bytes() == b"\xff\xd8\xff\xe0jpeg"


def test_oversized_photo_is_413_and_leaves_nothing_behind(client, store, monkeypatch, tmp_path):
    from backend.jobboard import config

    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path))
    monkeypatch.setattr(config, "MAX_PHOTO_BYTES", 1024)
    big = b"\x89PNG\r\n\x1a\n" + b"\x00" * 200_000

    r = _register(client, email="big@example.com", role="employee", files={"photo": ("big.png", big, "image/png")})
    assert r.status_code == 413, r.text
    assert r.json()["error"] == "File is too large. Maximum size is 5MB."
    assert list(tmp_path.iterdir()) == []
    assert store.get_user_by_email("big@example.com") is None


def test_photo_is_removed_when_saving_the_user_fails(client, store, monkeypatch, tmp_path):
    from backend.jobboard import config
    from backend.jobboard.utils.error_handlers import ConflictError

    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path))

    def lost_race(data):
        raise ConflictError("User with this email already exists")

    monkeypatch.setattr(store, "create_user", lost_race)

    r = _register(
        client,
        email="race@example.com",
        role="employee",
        files={"photo": ("me.png", b"\x89PNG\r\n\x1a\npixels", "image/png")},
    )
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "User with this email already exists"
    assert list(tmp_path.iterdir()) == []


def test_account_survives_token_storage_failure_and_login_recovers(client, store, monkeypatch):
    from backend.jobboard.utils.error_handlers import StorageError

    def unavailable(token, user_id):
        raise StorageError("Storage is temporarily unavailable. Please try again later.")

    with monkeypatch.context() as m:
        m.setattr(store, "add_refresh_token", unavailable)
        r = _register(client, email="partial@example.com", role="employee")
    assert r.status_code == 500, r.text
    assert r.json()["success"] is False

    assert store.get_user_by_email("partial@example.com") is not None
    login = _login(client, email="partial@example.com")
    assert login.status_code == 200, login.text
    assert store.has_refresh_token(login.json()["refreshToken"], login.json()["user"]["id"])
