"""
Tests for the dashboard, maintenance and health endpoints.
"""


def make_post(client, headers, category, placement, slug, **extra):
    payload = {"title": slug.title(), "slug": slug, "category_id": category["id"], "placement_id": placement["id"]}
    payload.update(extra)
    response = client.post("/api/posts", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestDashboard:
    def test_requires_auth(self, client):
        assert client.get("/api/dashboard").status_code == 401

    def test_stats(self, client, author_headers, category, placement):
        make_post(client, author_headers, category, placement, "one")
        make_post(client, author_headers, category, placement, "two", status="published")

        data = client.get("/api/dashboard", headers=author_headers).json()["data"]

        assert data["stats"]["total_posts"] == 2
        assert data["stats"]["posts_by_status"] == {"draft": 1, "published": 1, "archived": 0}
        assert data["stats"]["total_users"] == 1
        assert data["stats"]["total_categories"] == 1
        assert data["stats"]["total_placements"] == 1
        assert [post["slug"] for post in data["recent_posts"]] == ["two", "one"]
        assert data["top_categories"][0]["post_count"] == 2


class TestReconcileCounts:
    def test_admin_reconciles(self, client, sql_store, admin_headers, author_headers, category, placement):
        make_post(client, author_headers, category, placement, "one")
        sql_store.update_by_id("categories", category["id"], {"post_count": 5})

        response = client.post("/api/maintenance/reconcile-counts", headers=admin_headers)

        assert response.status_code == 200
        report = response.json()["data"]
        assert report["categories"] == [{"id": category["id"], "name": "News", "stored": 5, "actual": 1}]
        assert report["placements"] == []
        assert client.get(f"/api/categories/{category['id']}").json()["data"]["post_count"] == 1

    def test_editor_cannot_reconcile(self, client, editor_headers):
        assert client.post("/api/maintenance/reconcile-counts", headers=editor_headers).status_code == 403


class TestHealth:
    def test_health_and_security_headers(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
