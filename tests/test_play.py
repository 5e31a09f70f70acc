"""API tests for POST /play/checkpoints/{id}/attempt."""

from unittest.mock import AsyncMock, patch

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.services.errors import StorageError


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


async def setup_run(client: AsyncClient, checkpoints: list[dict] | None = None) -> tuple[str, dict, list[int]]:
    """Create a hunt, join it; return (token, run_dict, checkpoint_ids)."""
    token = await register_and_login(client, "player@example.com", "player")
    resp = await client.post(
        "/hunts",
        json={
            "title": "Park Loop",
            "checkpoints": checkpoints
            or [{"answer": "ready"}, {"answer": "park"}, {"answer": "fountain"}],
        },
        headers=auth_headers(token),
    )
    hunt = resp.json()
    run = (await client.post(f"/hunts/{hunt['id']}/join", headers=auth_headers(token))).json()
    return token, run, [cp["id"] for cp in hunt["checkpoints"]]


async def attempt(client: AsyncClient, token: str, checkpoint_id: int, **body):
    return await client.post(
        f"/play/checkpoints/{checkpoint_id}/attempt", json=body, headers=auth_headers(token)
    )


# ---- happy path --------------------------------------------------------------

class TestAttemptFlow:
    async def test_walkthrough(self, db_client: AsyncClient, derived_badges: AsyncSession):
        token, run, cps = await setup_run(db_client)

        r1 = await attempt(db_client, token, cps[0], run_id=run["id"], answer=" READY ")
        assert r1.status_code == 200
        assert r1.json() == {
            "was_correct": True,
            "attempts_used": 1,
            "attempts_remaining": None,
            "next_checkpoint_id": cps[1],
            "finished": False,
            "badges_awarded": ["first-find"],
        }

        r2 = await attempt(db_client, token, cps[1], run_id=run["id"], answer="pond")
        assert r2.json()["was_correct"] is False
        assert r2.json()["next_checkpoint_id"] is None

        r3 = await attempt(db_client, token, cps[1], run_id=run["id"], answer="park")
        assert r3.json()["next_checkpoint_id"] == cps[2]
        assert r3.json()["attempts_used"] == 2

        r4 = await attempt(db_client, token, cps[2], run_id=run["id"], answer="fountain")
        final = r4.json()
        assert final["finished"] is True
        assert "pathfinder" in final["badges_awarded"]
        assert "speedrunner" in final["badges_awarded"]

        badges = await db_client.get(f"/users/{run['user_id']}/badges")
        assert sorted(b["key"] for b in badges.json()) == ["first-find", "pathfinder", "speedrunner"]

        runs = await db_client.get(f"/users/{run['user_id']}/runs")
        finished_run = runs.json()[0]["run"]
        assert finished_run["status"] == "completed"
        assert finished_run["total_time_seconds"] is not None

    async def test_coordinates_inside_geofence(self, db_client: AsyncClient):
        token, run, cps = await setup_run(
            db_client, [{"answer": "pier", "lat": 0.0, "lng": 0.0, "tolerance_m": 50}]
        )

        resp = await attempt(db_client, token, cps[0], run_id=run["id"], answer="pier", lat=0.0003, lng=0.0)
        assert resp.status_code == 200
        assert resp.json()["finished"] is True


# ---- error mapping -----------------------------------------------------------

class TestAttemptErrors:
    async def test_requires_auth(self, db_client: AsyncClient):
        _, run, cps = await setup_run(db_client)
        resp = await db_client.post(
            f"/play/checkpoints/{cps[0]}/attempt", json={"run_id": run["id"], "answer": "ready"}
        )
        assert resp.status_code == 401

    async def test_blank_answer(self, db_client: AsyncClient):
        token, run, cps = await setup_run(db_client)
        resp = await attempt(db_client, token, cps[0], run_id=run["id"], answer="   ")
        assert resp.status_code == 400

    async def test_lat_without_lng(self, db_client: AsyncClient):
        token, run, cps = await setup_run(db_client)
        resp = await attempt(db_client, token, cps[0], run_id=run["id"], answer="ready", lat=1.0)
        assert resp.status_code == 422

    async def test_unknown_run(self, db_client: AsyncClient):
        token, _, cps = await setup_run(db_client)
        resp = await attempt(db_client, token, cps[0], run_id=9999, answer="ready")
        assert resp.status_code == 404

    async def test_unknown_checkpoint(self, db_client: AsyncClient):
        token, run, _ = await setup_run(db_client)
        resp = await attempt(db_client, token, 9999, run_id=run["id"], answer="ready")
        assert resp.status_code == 404

    async def test_someone_elses_run(self, db_client: AsyncClient):
        _, run, cps = await setup_run(db_client)
        intruder = await register_and_login(db_client, "intruder@example.com", "intruder")
        resp = await attempt(db_client, intruder, cps[0], run_id=run["id"], answer="ready")
        assert resp.status_code == 403

    async def test_checkpoint_of_other_hunt(self, db_client: AsyncClient):
        token, run, _ = await setup_run(db_client)
        other = await db_client.post(
            "/hunts",
            json={"title": "Elsewhere", "checkpoints": [{"answer": "x"}]},
            headers=auth_headers(token),
        )
        foreign_cp = other.json()["checkpoints"][0]["id"]

        resp = await attempt(db_client, token, foreign_cp, run_id=run["id"], answer="x")
        assert resp.status_code == 409

    async def test_out_of_range(self, db_client: AsyncClient):
        token, run, cps = await setup_run(
            db_client, [{"answer": "pier", "lat": 0.0, "lng": 0.0, "tolerance_m": 50}]
        )
        resp = await attempt(db_client, token, cps[0], run_id=run["id"], answer="pier", lat=0.0018, lng=0.0)
        assert resp.status_code == 409
        assert "from the checkpoint" in resp.json()["detail"]

    async def test_attempt_cap(self, db_client: AsyncClient):
        token, run, cps = await setup_run(db_client, [{"answer": "pier", "max_attempts": 1}])

        first = await attempt(db_client, token, cps[0], run_id=run["id"], answer="dock")
        assert first.json()["attempts_remaining"] == 0

        resp = await attempt(db_client, token, cps[0], run_id=run["id"], answer="pier")
        assert resp.status_code == 429

    async def test_finished_run(self, db_client: AsyncClient):
        token, run, cps = await setup_run(db_client, [{"answer": "pier"}])
        await attempt(db_client, token, cps[0], run_id=run["id"], answer="pier")

        resp = await attempt(db_client, token, cps[0], run_id=run["id"], answer="pier")
        assert resp.status_code == 409

    async def test_storage_failure_is_503(self, db_client: AsyncClient):
        token, run, cps = await setup_run(db_client)

        with patch(
            "sidequest.routers.play.submit_attempt",
            new_callable=AsyncMock,
            side_effect=StorageError("Could not record the attempt; please retry"),
        ):
            resp = await attempt(db_client, token, cps[0], run_id=run["id"], answer="ready")

        assert resp.status_code == 503
