"""
Generic CRUD endpoints.

Each function returns an endpoint callable for one collection, ready for
``router.add_api_route``. Request bodies are validated by the schema passed
in, so the endpoint signatures are built per resource.
"""

from typing import Any, Callable, Dict, Mapping, Optional, Type

from fastapi import Request, Response, status
from pydantic import BaseModel

from api_features import APIFeatures
from database import DocumentCollection
from errors import AppError

NOT_FOUND = "No document found with that ID."


def _one(key: str, doc: dict, model: DocumentCollection) -> Dict[str, Any]:
    return {"status": "success", "data": {key: model.to_public(doc)}}


def get_all(
    model: DocumentCollection,
    key: str,
    overrides: Optional[Mapping[str, str]] = None,
    criteria_from: Optional[Callable[[Request], Dict[str, Any]]] = None,
):
    def handler(request: Request):
        params = dict(request.query_params)
        if overrides:
            params.update(overrides)
        criteria = criteria_from(request) if criteria_from else None
        features = APIFeatures(model, params, criteria).filter().sort().limit_fields().paginate()
        docs = features.execute()
        return {
            "status": "success",
            "results": len(docs),
            "data": {key: [model.to_public(doc) for doc in docs]},
        }

    return handler


def get_one(
    model: DocumentCollection,
    key: str,
    criteria_from: Optional[Callable[[Request], Dict[str, Any]]] = None,
):
    def handler(doc_id: str, request: Request):
        criteria = criteria_from(request) if criteria_from else None
        doc = model.find_by_id(doc_id, criteria=criteria)
        if doc is None:
            raise AppError(NOT_FOUND, 404)
        return _one(key, doc, model)

    return handler


def create_one(model: DocumentCollection, key: str, schema: Type[BaseModel]):
    def handler(payload: schema):  # type: ignore[valid-type]
        doc = model.create(payload.model_dump())
        return _one(key, doc, model)

    return handler


def update_one(model: DocumentCollection, key: str, schema: Type[BaseModel]):
    def handler(doc_id: str, payload: schema):  # type: ignore[valid-type]
        doc = model.update_by_id(doc_id, payload.model_dump(exclude_unset=True, exclude_none=True))
        if doc is None:
            raise AppError(NOT_FOUND, 404)
        return _one(key, doc, model)

    return handler


def delete_one(model: DocumentCollection):
    def handler(doc_id: str):
        doc = model.delete_by_id(doc_id)
        if doc is None:
            raise AppError(NOT_FOUND, 404)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return handler
