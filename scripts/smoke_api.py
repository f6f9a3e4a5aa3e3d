"""End-to-end smoke test against a running TaskTrack API.

Signs up a throwaway user, creates a todo, lists it back, deletes it, and
checks that it is gone and that unauthenticated requests are refused.

Prerequisites:
  - API running: `tasktrack-api` (or `python -m tasktrack_api.runner`)

Usage:
  python scripts/smoke_api.py [--base-url http://localhost:3000]
"""

import argparse
import asyncio
import logging
import sys
import uuid

import httpx

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def run(base_url: str) -> None:
    suffix = uuid.uuid4().hex[:8]
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        health = await client.get("/api/health")
        assert health.status_code == 200, f"Health check failed: {health.text}"

        signup = await client.post(
            "/api/auth/signup",
            json={
                "username": f"smoke_{suffix}",
                "email": f"smoke_{suffix}@tasktrack.dev",
                "password": "smoke-test-pw",
            },
        )
        assert signup.status_code == 201, f"Signup failed: {signup.text}"
        token = signup.json()["data"]["token"]
        auth = {"Authorization": f"Bearer {token}"}
        logger.info(f"Signed up smoke_{suffix}")

        created = await client.post(
            "/api/todos", json={"title": "Smoke test todo"}, headers=auth
        )
        assert created.status_code == 201, f"Create failed: {created.text}"
        todo = created.json()["data"]["todo"]
        assert todo["completed"] is False and todo["priority"] == "medium", todo

        listed = await client.get("/api/todos", headers=auth)
        assert listed.status_code == 200, f"List failed: {listed.text}"
        data = listed.json()["data"]
        assert data["total"] == 1 and data["todos"][0]["id"] == todo["id"], data

        deleted = await client.delete(f"/api/todos/{todo['id']}", headers=auth)
        assert deleted.status_code == 200, f"Delete failed: {deleted.text}"

        gone = await client.get(f"/api/todos/{todo['id']}", headers=auth)
        assert gone.status_code == 404, f"Deleted todo still readable: {gone.text}"

        anonymous = await client.get("/api/todos")
        assert anonymous.status_code == 401, f"Unauthenticated list allowed: {anonymous.text}"

    logger.info("SMOKE TEST PASSED")


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke-test a running TaskTrack API")
    parser.add_argument("--base-url", default="http://localhost:3000")
    args = parser.parse_args()
    try:
        asyncio.run(run(args.base_url))
    except (AssertionError, httpx.HTTPError) as e:
        logger.error(f"SMOKE TEST FAILED: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
