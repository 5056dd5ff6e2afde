def test_list_users_admin_only(client, admin_user, make_user, auth_headers):
    alice = make_user("alice@example.com")

    response = client.get("/users", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert [u["email"] for u in response.json()] == ["admin@example.com", "alice@example.com"]

    response = client.get("/users", headers=auth_headers(alice))
    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required"}


def test_get_user_self_or_admin(client, admin_user, make_user, auth_headers):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")

    assert client.get(f"/users/{alice.id}", headers=auth_headers(alice)).status_code == 200
    assert client.get(f"/users/{alice.id}", headers=auth_headers(admin_user)).status_code == 200
    assert client.get(f"/users/{alice.id}", headers=auth_headers(bob)).status_code == 403


def test_get_user_not_found(client, admin_user, auth_headers):
    response = client.get("/users/9999", headers=auth_headers(admin_user))
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_update_user(client, admin_user, make_user, auth_headers):
    alice = make_user("alice@example.com")
    response = client.put(
        f"/users/{alice.id}",
        headers=auth_headers(admin_user),
        json={"email": "alice.new@example.com", "role": "admin"}
    )
    assert response.status_code == 200
    assert response.json()["email"] == "alice.new@example.com"
    assert response.json()["role"] == "admin"


def test_update_user_password_allows_login(client, admin_user, make_user, auth_headers):
    alice = make_user("alice@example.com")
    client.put(f"/users/{alice.id}", headers=auth_headers(admin_user), json={"password": "nouveau123"})
    response = client.post("/auth/login", json={"email": "alice@example.com", "password": "nouveau123"})
    assert response.status_code == 200


def test_update_user_email_clash(client, admin_user, make_user, auth_headers):
    alice = make_user("alice@example.com")
    response = client.put(f"/users/{alice.id}", headers=auth_headers(admin_user), json={"email": "admin@example.com"})
    assert response.status_code == 400


def test_update_user_requires_admin(client, make_user, auth_headers):
    alice = make_user("alice@example.com")
    response = client.put(f"/users/{alice.id}", headers=auth_headers(alice), json={"role": "admin"})
    assert response.status_code == 403


def test_delete_user_unassigns_tasks(client, admin_user, make_user, auth_headers, create_task):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    shared = create_task(alice, [alice, bob], title="Partagée")
    solo = create_task(admin_user, [alice], title="Solo")
    other = create_task(admin_user, [bob], title="Autre")

    response = client.delete(f"/users/{alice.id}", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json() == {"message": "User deleted", "affected_tasks": 2, "unassigned_tasks": [solo["id"]]}

    headers = auth_headers(admin_user)
    shared_after = client.get(f"/tasks/{shared['id']}", headers=headers).json()
    assert [u["id"] for u in shared_after["assigned_to"]] == [bob.id]
    assert shared_after["created_by"] is None

    solo_after = client.get(f"/tasks/{solo['id']}", headers=headers).json()
    assert solo_after["assigned_to"] == []

    assert client.get(f"/tasks/{other['id']}", headers=headers).status_code == 200
    assert client.get(f"/users/{alice.id}", headers=headers).status_code == 404


def test_admin_cannot_delete_self(client, admin_user, auth_headers):
    response = client.delete(f"/users/{admin_user.id}", headers=auth_headers(admin_user))
    assert response.status_code == 400


def test_delete_user_requires_admin(client, make_user, auth_headers):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    assert client.delete(f"/users/{bob.id}", headers=auth_headers(alice)).status_code == 403
