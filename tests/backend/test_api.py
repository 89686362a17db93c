"""API tests through the FastAPI TestClient."""


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["database"]["healthy"] is True

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "trace-42"})
        assert response.headers["x-request-id"] == "trace-42"


class TestProfiles:
    def test_put_then_get(self, client, onboarded):
        response = client.get("/api/profiles/user-1")

        assert response.status_code == 200
        data = response.json()
        assert data["primary_cluster"] == "frontend"
        assert data["tech_stack"] == ["React"]
        assert data["activity_weight"] == 1.0

    def test_partial_update(self, client, onboarded):
        response = client.put("/api/profiles/user-1", json={"popularity_weight": 2.5})

        assert response.status_code == 200
        assert response.json()["popularity_weight"] == 2.5
        assert response.json()["goals"] == ["learning-new-tech"]

    def test_missing_profile(self, client):
        response = client.get("/api/profiles/ghost")
        assert response.status_code == 404
        assert response.json()["detail"] == "Profile not found"

    def test_weight_out_of_range(self, client):
        response = client.put("/api/profiles/user-1", json={"activity_weight": 9})
        assert response.status_code == 422


class TestFeed:
    def test_pages(self, client, onboarded, add_repo):
        for repo_id in range(1, 6):
            add_repo(repo_id, recommendation=10.0 * repo_id)

        first = client.get("/api/feed/user-1", params={"page_size": 3}).json()
        assert [item["id"] for item in first["items"]] == [5, 4, 3]
        assert first["items"][0]["feed"]["source"] == "primary"
        assert first["has_more"] is True

        second = client.get(
            "/api/feed/user-1", params={"page_size": 3, "cursor": first["next_cursor"]}
        ).json()
        assert [item["id"] for item in second["items"]] == [2, 1]
        assert second["has_more"] is False
        assert second["next_cursor"] is None

    def test_missing_profile(self, client):
        response = client.get("/api/feed/ghost")
        assert response.status_code == 404
        assert response.json()["status_code"] == 404

    def test_bad_cursor(self, client, onboarded):
        response = client.get("/api/feed/user-1", params={"cursor": "garbage!"})
        assert response.status_code == 400

    def test_page_size_must_be_positive(self, client, onboarded):
        response = client.get("/api/feed/user-1", params={"page_size": 0})
        assert response.status_code == 422


class TestInteractions:
    def test_like_removes_from_feed(self, client, onboarded, add_repo):
        add_repo(1, recommendation=90.0)
        add_repo(2, recommendation=10.0)
        assert client.get("/api/feed/user-1").json()["items"][0]["id"] == 1

        response = client.post(
            "/api/interactions", json={"user_id": "user-1", "repo_id": 1, "action": "liked"}
        )

        assert response.status_code == 201
        assert response.json()["changed"] is True
        assert [item["id"] for item in client.get("/api/feed/user-1").json()["items"]] == [2]

    def test_unknown_repository(self, client):
        response = client.post(
            "/api/interactions", json={"user_id": "user-1", "repo_id": 404, "action": "saved"}
        )
        assert response.status_code == 404

    def test_unknown_action(self, client, add_repo):
        add_repo(1)
        response = client.post(
            "/api/interactions", json={"user_id": "user-1", "repo_id": 1, "action": "starred"}
        )
        assert response.status_code == 422

    def test_saved_listing_and_stats(self, client, add_repo):
        add_repo(1)
        add_repo(2)
        for repo_id in (1, 2):
            client.post(
                "/api/interactions", json={"user_id": "user-1", "repo_id": repo_id, "action": "saved"}
            )
        client.post("/api/interactions", json={"user_id": "user-1", "repo_id": 1, "action": "unsaved"})

        saved = client.get("/api/users/user-1/saved").json()
        assert saved["total"] == 1
        assert saved["repos"][0]["id"] == 2

        stats = client.get("/api/users/user-1/stats").json()
        assert stats["saved"] == 2
        assert stats["saved_now"] == 1

        liked = client.get("/api/users/user-1/liked").json()
        assert liked == {"repos": [], "total": 0}


class TestClusters:
    def test_catalogue(self, client):
        data = client.get("/api/clusters").json()
        names = {cluster["name"] for cluster in data["clusters"]}
        assert {"frontend", "backend", "general"} <= names
        assert data["total"] == len(data["clusters"])
