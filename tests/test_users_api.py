from __future__ import annotations

from conftest import ALICE, API, BOB, auth_headers, login


def test_read_own_profile(client, alice, alice_headers) -> None:
    response = client.get(f"{API}/user", headers=alice_headers)

    assert response.status_code == 200
    me = response.json()
    assert me["id"] == alice["id"]
    assert "password" not in me


def test_update_profile(client, alice, alice_headers, bob) -> None:
    response = client.put(
        f"{API}/user/profile",
        json={"displayName": "Alice L.", "email": "alice.l@example.com"},
        headers=alice_headers,
    )
    assert response.status_code == 200
    assert response.json()["displayName"] == "Alice L."
    assert response.json()["email"] == "alice.l@example.com"

    taken = client.put(
        f"{API}/user/profile",
        json={"displayName": "Alice", "email": BOB["email"]},
        headers=alice_headers,
    )
    assert taken.status_code == 409

    missing = client.put(f"{API}/user/profile", json={"displayName": "x"}, headers=alice_headers)
    assert missing.status_code == 400


def test_display_name_stays_unique_on_update(client, admin_headers, alice, alice_headers,
                                             bob) -> None:
    taken = client.put(
        f"{API}/user/profile",
        json={"displayName": BOB["displayName"], "email": ALICE["email"]},
        headers=alice_headers,
    )
    assert taken.status_code == 409
    assert taken.json()["errorCode"] == "DISPLAY_NAME_EXISTS"

    unchanged = client.put(
        f"{API}/user/profile",
        json={"displayName": ALICE["displayName"], "email": ALICE["email"]},
        headers=alice_headers,
    )
    assert unchanged.status_code == 200

    admin_taken = client.put(f"{API}/admin/users/{alice['id']}",
                             json={"displayName": BOB["displayName"]}, headers=admin_headers)
    assert admin_taken.status_code == 409
    assert admin_taken.json()["errorCode"] == "DISPLAY_NAME_EXISTS"

    me = client.get(f"{API}/user", headers=alice_headers).json()
    assert me["displayName"] == ALICE["displayName"]


def test_change_password(client, alice_headers) -> None:
    wrong = client.put(
        f"{API}/user/password",
        json={"currentPassword": "not-it", "newPassword": "N3wPassword"},
        headers=alice_headers,
    )
    assert wrong.status_code == 400
    assert wrong.json()["errorCode"] == "INVALID_PASSWORD"

    weak = client.put(
        f"{API}/user/password",
        json={"currentPassword": ALICE["password"], "newPassword": "weak"},
        headers=alice_headers,
    )
    assert weak.status_code == 400

    ok = client.put(
        f"{API}/user/password",
        json={"currentPassword": ALICE["password"], "newPassword": "N3wPassword"},
        headers=alice_headers,
    )
    assert ok.status_code == 204

    old = client.post(f"{API}/login", json={"email": ALICE["email"], "password": ALICE["password"]})
    assert old.status_code == 401
    login(client, ALICE["email"], "N3wPassword")


def test_user_directory_lists_project_mates(client, storage, admin_headers, alice, alice_headers,
                                            bob) -> None:
    storage.users.remove_project(bob["id"], "default")

    ids = {u["id"] for u in client.get(f"{API}/users", headers=alice_headers).json()}

    assert alice["id"] in ids
    assert "admin" in ids
    assert bob["id"] not in ids


def test_admin_user_crud(client, storage, admin_headers) -> None:
    created = client.post(
        f"{API}/admin/users",
        json={
            "displayName": "carol",
            "email": "carol@example.com",
            "role": "project_admin",
            "password": "Car0lPass",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    carol = created.json()
    assert created.headers["Location"] == f"{API}/admin/users/{carol['id']}"
    assert carol["role"] == "project_admin"
    assert carol["projects"] == ["default"]
    assert "password" not in carol
    assert carol["id"] in storage.projects.get_by_id("default").members

    listing = client.get(f"{API}/admin/users", headers=admin_headers).json()
    assert {u["id"] for u in listing} == {"admin", carol["id"]}
    assert all("password" not in u for u in listing)

    updated = client.put(
        f"{API}/admin/users/{carol['id']}",
        json={"role": "system_admin", "password": "N3wCarolPass"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["role"] == "system_admin"
    assert updated.json()["email"] == "carol@example.com"
    token = login(client, "carol@example.com", "N3wCarolPass")["accessToken"]
    assert client.get(f"{API}/admin/users", headers=auth_headers(token)).status_code == 200

    conflict = client.put(f"{API}/admin/users/{carol['id']}", json={"email": "admin@example.com"},
                          headers=admin_headers)
    assert conflict.status_code == 409

    missing = client.put(f"{API}/admin/users/user_missing", json={"role": "user"},
                         headers=admin_headers)
    assert missing.status_code == 404


def test_admin_create_user_conflict_and_validation(client, admin_headers, alice) -> None:
    conflict = client.post(
        f"{API}/admin/users",
        json={"displayName": "someone", "email": ALICE["email"], "password": "Passw0rd!"},
        headers=admin_headers,
    )
    assert conflict.status_code == 409

    bad_role = client.post(
        f"{API}/admin/users",
        json={"displayName": "dave", "email": "dave@example.com", "password": "Passw0rd!",
              "role": "root"},
        headers=admin_headers,
    )
    assert bad_role.status_code == 400


def test_admin_delete_user(client, storage, admin_headers, alice) -> None:
    storage.projects.add_admin("default", alice["id"])

    response = client.delete(f"{API}/admin/users/{alice['id']}", headers=admin_headers)
    assert response.status_code == 204
    assert storage.users.get_by_id(alice["id"]) is None
    default = storage.projects.get_by_id("default")
    assert alice["id"] not in default.members
    assert alice["id"] not in default.admins

    assert client.delete(f"{API}/admin/users/{alice['id']}", headers=admin_headers).status_code == 404

    self_delete = client.delete(f"{API}/admin/users/admin", headers=admin_headers)
    assert self_delete.status_code == 400
    assert self_delete.json()["errorCode"] == "SELF_DELETE"


def test_admin_user_routes_require_system_admin(client, alice_headers) -> None:
    assert client.get(f"{API}/admin/users", headers=alice_headers).status_code == 403
    assert client.delete(f"{API}/admin/users/admin", headers=alice_headers).status_code == 403
    assert client.get(f"{API}/admin/users").status_code == 401
