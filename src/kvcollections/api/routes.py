"""HTTP routes exposing collections as REST resources.

Per public collection ``name``:

    GET    /{name}                      list()
    GET    /{name}/{index}/{key...}     list_subcollection(index, key parts)
    GET    /{name}/{id}                 get(id)
    POST   /{name}                      append(body)          201
    PUT    /{name}/{id}                 replace(id, body)
    PATCH  /{name}/{id}                 merge(id, body)
    DELETE /{name}/{id}                 delete(id)            204

Not-found results answer 404 with an empty body. Internal collections get
no routes. Apps that mount build_router themselves call
add_exception_handlers to get the JSON error mapping.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, FastAPI, Request
from starlette.responses import JSONResponse, Response

from ..core.errors import CollectionsError, InvalidRecordError, UnknownIndexError

if TYPE_CHECKING:
    from ..core.registry import Collections
    from ..interfaces.collection import CollectionAPI

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[CollectionsError], int] = {
    InvalidRecordError: 400,
    UnknownIndexError: 404,
}


def split_key_path(path: str) -> list[str]:
    """Split a URL key path into key parts, dropping empty segments."""
    return [part for part in path.split("/") if part]


def build_router(collections: Collections) -> APIRouter:
    """Create routes for every non-internal collection of the registry."""
    router = APIRouter()
    for collection in collections.public():
        add_collection_routes(router, collection)
    return router


def build_app(collections: Collections, prefix: str = "") -> FastAPI:
    """FastAPI application serving the registry under prefix."""
    app = FastAPI(title="kv-collections")
    app.include_router(build_router(collections), prefix=prefix)
    add_exception_handlers(app)
    app.state.collections = collections
    return app


def add_exception_handlers(app: FastAPI) -> None:
    """Install the engine error mapping on an app that mounts build_router."""
    app.add_exception_handler(CollectionsError, collections_error_handler)


async def collections_error_handler(request: Request, exc: CollectionsError) -> JSONResponse:
    """Translate engine failures into JSON error responses."""
    status = _ERROR_STATUS.get(type(exc), 500)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        {"error": exc.kind, "message": str(exc), "key": _jsonable_key(exc.key)},
        status_code=status,
    )


def add_collection_routes(router: APIRouter, collection: CollectionAPI) -> None:
    """Register the REST routes of one collection on router."""
    base = f"/{collection.name}"

    async def list_records() -> Response:
        return _json_response(await collection.list())

    router.add_api_route(base, list_records, methods=["GET"], name=f"{collection.name}:list")

    for index_name in collection.index_names:
        router.add_api_route(
            f"{base}/{index_name}/{{key:path}}",
            _subcollection_endpoint(collection, index_name),
            methods=["GET"],
            name=f"{collection.name}:{index_name}",
        )

    async def get_record(record_id: str) -> Response:
        return _json_response(await collection.get(record_id))

    async def append_record(request: Request) -> Response:
        body = await _read_object(request)
        return _json_response(await collection.append(body), status_code=201)

    async def replace_record(record_id: str, request: Request) -> Response:
        body = await _read_object(request)
        return _json_response(await collection.replace(record_id, body))

    async def merge_record(record_id: str, request: Request) -> Response:
        body = await _read_object(request)
        return _json_response(await collection.merge(record_id, body))

    async def delete_record(record_id: str) -> Response:
        if await collection.delete(record_id) is None:
            return Response(status_code=404)
        return Response(status_code=204)

    item = f"{base}/{{record_id}}"
    router.add_api_route(item, get_record, methods=["GET"], name=f"{collection.name}:get")
    router.add_api_route(base, append_record, methods=["POST"], name=f"{collection.name}:append")
    router.add_api_route(item, replace_record, methods=["PUT"], name=f"{collection.name}:replace")
    router.add_api_route(item, merge_record, methods=["PATCH"], name=f"{collection.name}:merge")
    router.add_api_route(item, delete_record, methods=["DELETE"], name=f"{collection.name}:delete")
    logger.info(f"Mounted routes for collection {collection.name!r}")


def _subcollection_endpoint(collection: CollectionAPI, index_name: str):
    async def list_subcollection(key: str) -> Response:
        return _json_response(
            await collection.list_subcollection(index_name, split_key_path(key))
        )

    return list_subcollection


async def _read_object(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRecordError(f"Request body is not valid JSON: {e}") from e
    if not isinstance(body, dict):
        raise InvalidRecordError("Request body must be a JSON object")
    return body


def _json_response(result: Any, status_code: int = 200) -> Response:
    if result is None:
        return Response(status_code=404)
    return JSONResponse(result, status_code=status_code)


def _jsonable_key(key: tuple[Any, ...] | None) -> list[Any] | None:
    if key is None:
        return None
    return [part.hex() if isinstance(part, bytes) else part for part in key]
