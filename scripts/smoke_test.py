from __future__ import annotations

import asyncio
import os
import sys
from typing import Optional

from polarion_client import (
    ClientConfig,
    PolarionClient,
    PolarionHTTPError,
    RetryConfig,
    WorkItem,
    is_not_found,
    setup_logging,
)
from polarion_client.core.config import BASE_URL_ENV, TOKEN_ENV, load_env_config


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    return val if val else default


def _print_step(title: str) -> None:
    print(f"\n== {title}")


def _fail(msg: str) -> int:
    print(f"FAILED: {msg}")
    return 1


async def run_smoke_test() -> int:
    # --- Config ---
    base_url, token = load_env_config()
    if not base_url or not token:
        return _fail(f"Missing {BASE_URL_ENV} or {TOKEN_ENV}.")

    project_id = _env("TEST_PROJECT_ID")
    work_item_id = _env("TEST_WORK_ITEM_ID")
    if not project_id or not work_item_id:
        return _fail("Missing TEST_PROJECT_ID or TEST_WORK_ITEM_ID.")

    print("Config:")
    print(f"  base_url: {base_url}")
    print(f"  project_id: {project_id}")
    print(f"  work_item_id: {work_item_id}")

    config = ClientConfig(retry=RetryConfig(max_retries=2, min_wait=1.0, max_wait=5.0))
    client = PolarionClient(base_url=base_url, bearer_token=token, config=config)

    async with client:
        # --- Fetch work item ---
        _print_step("Fetch work item")
        try:
            wi = await client.request_model(
                WorkItem,
                "GET",
                f"/projects/{project_id}/workitems/{work_item_id}",
                params={"fields[workitems]": "@all"},
            )
        except PolarionHTTPError as exc:
            return _fail(f"Fetch failed: {exc.detailed()}")

        print(f"Work item {wi.id}: {wi.title!r}")
        author = wi.author
        print(f"  author: {author.id if author else '-'}")
        print(f"  assignees: {[a.id for a in wi.assignees]}")

        # --- Custom fields ---
        _print_step("Custom fields")
        cf = wi.custom_fields
        if not cf:
            print("  (none)")
        for key in sorted(cf):
            print(f"  {key}: {cf[key]!r}")

        # --- Missing item ---
        _print_step("Missing work item")
        try:
            await client.get(f"/projects/{project_id}/workitems/__missing__")
        except Exception as exc:  # noqa: BLE001
            if not is_not_found(exc):
                return _fail(f"Expected 404, got {exc}")
            print("404 reported as expected")
        else:
            return _fail("Expected 404 for a missing work item.")

    print("\nPASSED smoke test.")
    return 0


if __name__ == "__main__":
    setup_logging(_env("LOG_LEVEL", "INFO"))
    sys.exit(asyncio.run(run_smoke_test()))
