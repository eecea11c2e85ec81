#!/usr/bin/env python3
"""Tasks demo

Two collections, ``projects`` and ``tasks``. Tasks are indexed by project
and date so they can be listed per project, per day or per time slot.

Usage:
    python demo/tasks_demo.py                 # scripted walk-through
    python demo/tasks_demo.py --serve --port 8000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from fastapi import FastAPI

from kvcollections import CollectionOptions, Collections, create_collections
from kvcollections.api import add_exception_handlers, build_router


def task_by_project(task):
    """Index key: project, date, then time or "*" for all-day tasks."""
    return [task["project"], task["date"], task.get("time") or "*"]


def build_collections() -> Collections:
    return create_collections(
        {
            "projects": {},
            "tasks": CollectionOptions(secondary_indexes={"by-project": task_by_project}),
        }
    )


def build_demo_app(collections: Collections) -> FastAPI:
    """Mount every collection under /api plus an /api/all-tasks shortcut."""
    api = build_router(collections)

    @api.get("/all-tasks")
    async def all_tasks():
        return await collections["tasks"].list()

    app = FastAPI(title="kv-collections demo")
    app.include_router(api, prefix="/api")
    add_exception_handlers(app)
    return app


async def walkthrough(collections: Collections) -> None:
    tasks = collections["tasks"]

    created = await tasks.append({"project": "x", "date": "2024-01-01"})
    task_id = created["$$id"]
    show("append", created)
    show("by-project x/2024-01-01", await tasks.list_subcollection("by-project", ["x", "2024-01-01"]))

    await tasks.replace(task_id, {"project": "y", "date": "2024-01-01"})
    show("by-project x/2024-01-01 after move", await tasks.list_subcollection("by-project", ["x", "2024-01-01"]))
    show("by-project y/2024-01-01 after move", await tasks.list_subcollection("by-project", ["y", "2024-01-01"]))

    show("merge time", await tasks.merge(task_id, {"time": "09:00"}))
    show("by-project y (any date)", await tasks.list_subcollection("by-project", ["y"]))

    show("delete", await tasks.delete(task_id))
    show("get after delete", await tasks.get(task_id))


def show(label: str, value) -> None:
    print(f"{label}: {json.dumps(value, indent=2)}")


def main() -> None:
    parser = argparse.ArgumentParser(description="kv-collections tasks demo")
    parser.add_argument("--serve", action="store_true", help="Serve the REST API instead of the walk-through")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    collections = build_collections()

    if args.serve:
        import uvicorn

        uvicorn.run(build_demo_app(collections), host=args.host, port=args.port)
    else:
        asyncio.run(walkthrough(collections))
    collections.close()


if __name__ == "__main__":
    main()
