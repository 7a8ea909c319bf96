"""
Tests for user management endpoints.
"""


class TestUserAdministration:
    """Admin-only user management."""

    def test_admin_lists_users(self, client, admin_headers, author, viewer):
        response = client.get("/api/users", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 3
        assert all("password_hash" not in user for user in data["items"])

    def test_list_filters_by_role_and_search(self, client, admin_headers, author, viewer):
        assert client.get("/api/users?role=viewer", headers=admin_headers).json()["data"]["total"] == 1
        found = client.get("/api/users?search=AUTHOR@", headers=admin_headers).json()["data"]["items"]
        assert [user["id"] for user in found] == [author["id"]]

    def test_editor_cannot_list_users(self, client, editor_headers):
        assert client.get("/api/users", headers=editor_headers).status_code == 403

    def test_admin_creates_user_with_role(self, client, admin_headers):
        response = client.post(
            "/api/users",
            headers=admin_headers,
            json={
                "email": "writer@example.com",
                "password": "password123",
                "first_name": "Wri",
                "last_name": "Ter",
                "role": "author",
            },
        )
        assert response.status_code == 201
        assert response.json()["data"]["role"] == "author"

    def test_admin_changes_role(self, client, admin_headers, author, headers_for):
        response = client.patch(f"/api/users/{author['id']}/role", headers=admin_headers, json={"role": "editor"})

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "editor"
        # Existing tokens pick up the new role immediately
        created = client.post("/api/categories", headers=headers_for(author), json={"name": "X", "slug": "x"})
        assert created.status_code == 201

    def test_admin_cannot_change_own_role(self, client, admin, admin_headers):
        response = client.patch(f"/api/users/{admin['id']}/role", headers=admin_headers, json={"role": "viewer"})
        assert response.status_code == 403

    def test_admin_cannot_delete_self(self, client, admin, admin_headers):
        assert client.delete(f"/api/users/{admin['id']}", headers=admin_headers).status_code == 403

    def test_admin_deletes_user(self, client, admin_headers, viewer):
        assert client.delete(f"/api/users/{viewer['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/users/{viewer['id']}", headers=admin_headers).status_code == 404

    def test_editor_cannot_delete_users(self, client, editor_headers, viewer):
        assert client.delete(f"/api/users/{viewer['id']}", headers=editor_headers).status_code == 403


class TestProfiles:
    """Everyone edits their own profile."""

    def test_viewer_edits_own_profile(self, client, viewer, viewer_headers):
        response = client.patch(f"/api/users/{viewer['id']}", headers=viewer_headers, json={"bio": "Hello"})

        assert response.status_code == 200
        assert response.json()["data"]["bio"] == "Hello"

    def test_viewer_cannot_edit_others(self, client, author, viewer_headers):
        assert client.patch(f"/api/users/{author['id']}", headers=viewer_headers, json={"bio": "x"}).status_code == 403

    def test_profile_patch_cannot_change_role(self, client, viewer, viewer_headers):
        client.patch(f"/api/users/{viewer['id']}", headers=viewer_headers, json={"role": "admin"})
        assert client.get(f"/api/users/{viewer['id']}", headers=viewer_headers).json()["data"]["role"] == "viewer"

    def test_email_taken(self, client, viewer, viewer_headers, author):
        response = client.patch(
            f"/api/users/{viewer['id']}", headers=viewer_headers, json={"email": "author@example.com"}
        )
        assert response.status_code == 409

    def test_password_change(self, client, viewer, viewer_headers):
        client.patch(f"/api/users/{viewer['id']}", headers=viewer_headers, json={"password": "newpassword"})

        response = client.post("/api/auth/login", json={"email": "viewer@example.com", "password": "newpassword"})
        assert response.status_code == 200

    def test_read_own_but_not_others(self, client, viewer, author, viewer_headers):
        assert client.get(f"/api/users/{viewer['id']}", headers=viewer_headers).status_code == 200
        assert client.get(f"/api/users/{author['id']}", headers=viewer_headers).status_code == 403
