"""Tests for hunt authoring, joining, abandoning and the leaderboard."""

from httpx import AsyncClient


# ---- helpers -----------------------------------------------------------------

async def register_and_login(
    client: AsyncClient,
    email: str,
    username: str,
    password: str = "testpass1",
) -> str:
    await client.post(
        "/auth/register",
        json={"email": email, "username": username, "password": password},
    )
    resp = await client.post("/auth/login", json={"email": email, "password": password})
    return resp.json()["access_token"]


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


CHECKPOINTS = [
    {"title": "Start", "riddle": "Are you set?", "answer": "ready"},
    {"title": "Green", "riddle": "Trees and benches", "answer": "park", "hint": "grass"},
    {"title": "Water", "riddle": "It sprays", "answer": "fountain", "max_attempts": 3},
]


async def create_hunt(client: AsyncClient, token: str, title: str = "City Walk", checkpoints=None) -> dict:
    resp = await client.post(
        "/hunts",
        json={
            "title": title,
            "description": "A stroll",
            "checkpoints": CHECKPOINTS if checkpoints is None else checkpoints,
        },
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---- creation ----------------------------------------------------------------

class TestCreateHunt:
    async def test_positions_follow_list_order(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "maker@example.com", "maker")
        hunt = await create_hunt(db_client, token)

        assert hunt["title"] == "City Walk"
        assert hunt["is_published"] is False
        assert [cp["position"] for cp in hunt["checkpoints"]] == [1, 2, 3]
        assert [cp["title"] for cp in hunt["checkpoints"]] == ["Start", "Green", "Water"]

    async def test_answers_are_not_exposed(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "maker@example.com", "maker")
        hunt = await create_hunt(db_client, token)

        resp = await db_client.get(f"/hunts/{hunt['id']}")
        assert resp.status_code == 200
        for cp in resp.json()["checkpoints"]:
            assert "answer" not in cp

    async def test_default_tolerance(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "maker@example.com", "maker")
        hunt = await create_hunt(db_client, token)

        assert all(cp["tolerance_m"] == 25.0 for cp in hunt["checkpoints"])

    async def test_duplicate_positions_conflict(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "maker@example.com", "maker")
        resp = await db_client.post(
            "/hunts",
            json={
                "title": "Clash",
                "checkpoints": [
                    {"answer": "a", "position": 2},
                    {"answer": "b", "position": 2},
                ],
            },
            headers=auth_headers(token),
        )
        assert resp.status_code == 409

    async def test_blank_answer_rejected(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "maker@example.com", "maker")
        resp = await db_client.post(
            "/hunts",
            json={"title": "Blank", "checkpoints": [{"answer": "   "}]},
            headers=auth_headers(token),
        )
        assert resp.status_code == 422

    async def test_requires_auth(self, db_client: AsyncClient):
        resp = await db_client.post("/hunts", json={"title": "Nope"})
        assert resp.status_code == 401

    async def test_unknown_hunt(self, db_client: AsyncClient):
        resp = await db_client.get("/hunts/9999")
        assert resp.status_code == 404


# ---- publishing --------------------------------------------------------------

class TestPublishHunt:
    async def test_publish_makes_hunt_listed(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "maker@example.com", "maker")
        hunt = await create_hunt(db_client, token)

        listed = await db_client.get("/hunts")
        assert listed.json() == []

        resp = await db_client.post(f"/hunts/{hunt['id']}/publish", headers=auth_headers(token))
        assert resp.status_code == 200
        assert resp.json()["is_published"] is True

        listed = await db_client.get("/hunts")
        assert [h["id"] for h in listed.json()] == [hunt["id"]]

    async def test_only_creator_can_publish(self, db_client: AsyncClient):
        maker = await register_and_login(db_client, "maker@example.com", "maker")
        other = await register_and_login(db_client, "other@example.com", "other")
        hunt = await create_hunt(db_client, maker)

        resp = await db_client.post(f"/hunts/{hunt['id']}/publish", headers=auth_headers(other))
        assert resp.status_code == 403

    async def test_empty_hunt_cannot_be_published(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "maker@example.com", "maker")
        hunt = await create_hunt(db_client, token, checkpoints=[])

        resp = await db_client.post(f"/hunts/{hunt['id']}/publish", headers=auth_headers(token))
        assert resp.status_code == 400


# ---- joining -----------------------------------------------------------------

class TestJoinHunt:
    async def test_join_creates_active_run(self, db_client: AsyncClient):
        maker = await register_and_login(db_client, "maker@example.com", "maker")
        player = await register_and_login(db_client, "player@example.com", "player")
        hunt = await create_hunt(db_client, maker)

        resp = await db_client.post(f"/hunts/{hunt['id']}/join", headers=auth_headers(player))
        assert resp.status_code == 201
        run = resp.json()
        assert run["status"] == "active"
        assert run["hunt_id"] == hunt["id"]
        assert run["started_at"] is not None
        assert run["first_checkpoint_id"] == hunt["checkpoints"][0]["id"]

    async def test_join_twice_conflicts(self, db_client: AsyncClient):
        maker = await register_and_login(db_client, "maker@example.com", "maker")
        hunt = await create_hunt(db_client, maker)

        first = await db_client.post(f"/hunts/{hunt['id']}/join", headers=auth_headers(maker))
        second = await db_client.post(f"/hunts/{hunt['id']}/join", headers=auth_headers(maker))
        assert first.status_code == 201
        assert second.status_code == 409

    async def test_join_unknown_hunt(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "player@example.com", "player")
        resp = await db_client.post("/hunts/9999/join", headers=auth_headers(token))
        assert resp.status_code == 404

    async def test_runs_listed_for_user(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "player@example.com", "player")
        hunt = await create_hunt(db_client, token)
        join = await db_client.post(f"/hunts/{hunt['id']}/join", headers=auth_headers(token))
        user_id = join.json()["user_id"]

        resp = await db_client.get(f"/users/{user_id}/runs")
        assert resp.status_code == 200
        runs = resp.json()
        assert len(runs) == 1
        assert runs[0]["hunt_title"] == "City Walk"
        assert runs[0]["run"]["status"] == "active"

    async def test_runs_for_unknown_user(self, db_client: AsyncClient):
        resp = await db_client.get("/users/9999/runs")
        assert resp.status_code == 404


class TestAbandonHunt:
    async def test_abandon_then_attempt_rejected(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "player@example.com", "player")
        hunt = await create_hunt(db_client, token)
        run = (await db_client.post(f"/hunts/{hunt['id']}/join", headers=auth_headers(token))).json()

        resp = await db_client.post(f"/hunts/{hunt['id']}/abandon", headers=auth_headers(token))
        assert resp.status_code == 200
        assert resp.json()["status"] == "abandoned"

        attempt = await db_client.post(
            f"/play/checkpoints/{run['first_checkpoint_id']}/attempt",
            json={"run_id": run["id"], "answer": "ready"},
            headers=auth_headers(token),
        )
        assert attempt.status_code == 409

    async def test_abandon_twice_conflicts(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "player@example.com", "player")
        hunt = await create_hunt(db_client, token)
        await db_client.post(f"/hunts/{hunt['id']}/join", headers=auth_headers(token))

        await db_client.post(f"/hunts/{hunt['id']}/abandon", headers=auth_headers(token))
        resp = await db_client.post(f"/hunts/{hunt['id']}/abandon", headers=auth_headers(token))
        assert resp.status_code == 409

    async def test_abandon_without_joining(self, db_client: AsyncClient):
        token = await register_and_login(db_client, "player@example.com", "player")
        hunt = await create_hunt(db_client, token)

        resp = await db_client.post(f"/hunts/{hunt['id']}/abandon", headers=auth_headers(token))
        assert resp.status_code == 404


# ---- leaderboard -------------------------------------------------------------

class TestLeaderboard:
    async def test_completed_runs_ranked_in_finish_order(self, db_client: AsyncClient):
        maker = await register_and_login(db_client, "maker@example.com", "maker")
        hunt = await create_hunt(db_client, maker, checkpoints=[{"answer": "go"}])
        checkpoint_id = hunt["checkpoints"][0]["id"]

        for name in ["fast", "slow", "quitter"]:
            token = await register_and_login(db_client, f"{name}@example.com", name)
            run = (await db_client.post(f"/hunts/{hunt['id']}/join", headers=auth_headers(token))).json()
            if name == "quitter":
                continue
            resp = await db_client.post(
                f"/play/checkpoints/{checkpoint_id}/attempt",
                json={"run_id": run["id"], "answer": "go"},
                headers=auth_headers(token),
            )
            assert resp.json()["finished"] is True

        resp = await db_client.get(f"/hunts/{hunt['id']}/leaderboard")
        assert resp.status_code == 200
        board = resp.json()
        assert board["hunt_id"] == hunt["id"]
        assert [e["rank"] for e in board["entries"]] == [1, 2]
        assert [e["username"] for e in board["entries"]] == ["fast", "slow"]
        assert all(e["total_time_seconds"] is not None for e in board["entries"])

    async def test_empty_leaderboard(self, db_client: AsyncClient):
        maker = await register_and_login(db_client, "maker@example.com", "maker")
        hunt = await create_hunt(db_client, maker)

        resp = await db_client.get(f"/hunts/{hunt['id']}/leaderboard")
        assert resp.json()["entries"] == []
