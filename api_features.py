"""
Query builder turning request query parameters into a Mongo query.

    features = APIFeatures(Tour, request.query_params).filter().sort().limit_fields().paginate()
    docs = features.execute()

``?price[lt]=1500&difficulty=easy&sort=-price,name&fields=name,price&page=2&limit=10``
becomes ``find({"price": {"$lt": 1500}, "difficulty": "easy"}, {"name": 1, "price": 1})
.sort([("price", -1), ("name", 1), ("_id", -1)]).skip(10).limit(10)``.
"""

import logging
import re
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

from database import DocumentCollection
from errors import AppError

logger = logging.getLogger(__name__)

RESERVED_PARAMS = ("page", "sort", "limit", "fields")
OPERATOR_PARAM = re.compile(r"^(?P<field>[\w.]+)\[(?P<op>gte|gt|lte|lt|ne|in)\]$")
NUMBER = re.compile(r"^-?\d+(\.\d+)?$")

DEFAULT_SORT = "-created_at"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100


def coerce_value(raw: str) -> Any:
    if NUMBER.match(raw):
        return float(raw) if "." in raw else int(raw)
    if raw in ("true", "false"):
        return raw == "true"
    return raw


def check_field_name(name: str) -> str:
    """Reject field names that Mongo would read as operators."""
    if not name or any(not part or part.startswith("$") for part in name.split(".")):
        raise AppError(f"Invalid field name: {name}.", 400)
    return name


def _positive_int(params: Mapping[str, str], name: str, default: int) -> int:
    raw = params.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise AppError(f"Invalid {name}: {raw}.", 400)
    if value < 1:
        raise AppError(f"Invalid {name}: {raw}.", 400)
    return value


class APIFeatures:
    def __init__(
        self,
        model: DocumentCollection,
        query_params: Mapping[str, str],
        criteria: Optional[Dict[str, Any]] = None,
    ):
        self.model = model
        self.query_params = query_params
        self.scope: Dict[str, Any] = dict(criteria or {})
        self.criteria: Dict[str, Any] = dict(self.scope)
        self.sort_spec: List[Tuple[str, int]] = []
        self.projection: Optional[Dict[str, int]] = None
        self.skip = 0
        self.limit = 0

    def filter(self) -> "APIFeatures":
        from_params: Dict[str, Any] = {}
        for key, raw in self.query_params.items():
            if key in RESERVED_PARAMS:
                continue
            match = OPERATOR_PARAM.match(key)
            if match is None:
                from_params[check_field_name(key)] = coerce_value(raw)
                continue
            field, op = check_field_name(match.group("field")), match.group("op")
            if op == "in":
                value: Any = [coerce_value(v) for v in raw.split(",") if v]
            else:
                value = coerce_value(raw)
            condition = from_params.get(field)
            if not isinstance(condition, dict):
                condition = {}
            condition[f"${op}"] = value
            from_params[field] = condition
        # path scope wins over anything in the query string
        self.criteria = {**from_params, **self.scope}
        return self

    def sort(self) -> "APIFeatures":
        raw = self.query_params.get("sort") or DEFAULT_SORT
        spec = []
        for name in raw.split(","):
            name = name.strip()
            if not name:
                continue
            if name.startswith("-"):
                spec.append((check_field_name(name[1:]), DESCENDING))
            else:
                spec.append((check_field_name(name), ASCENDING))
        # stable pagination
        if not any(field == "_id" for field, _ in spec):
            spec.append(("_id", DESCENDING))
        self.sort_spec = spec
        return self

    def limit_fields(self) -> "APIFeatures":
        raw = self.query_params.get("fields")
        if not raw:
            self.projection = self.model.default_projection()
            return self
        names = [name.strip() for name in raw.split(",") if name.strip()]
        for name in names:
            check_field_name(name[1:] if name.startswith("-") else name)
        excluded = [name[1:] for name in names if name.startswith("-")]
        included = [name for name in names if not name.startswith("-")]
        if included and excluded:
            raise AppError("Cannot mix included and excluded fields.", 400)
        if included:
            self.projection = {name: 1 for name in included}
        else:
            self.projection = {name: 0 for name in excluded}
            self.projection.update(self.model.default_projection() or {})
        return self

    def paginate(self) -> "APIFeatures":
        page = _positive_int(self.query_params, "page", DEFAULT_PAGE)
        self.limit = _positive_int(self.query_params, "limit", DEFAULT_LIMIT)
        self.skip = (page - 1) * self.limit
        return self

    def execute(self) -> List[dict]:
        cursor = self.model.find(self.criteria, self.projection)
        if self.sort_spec:
            cursor = cursor.sort(self.sort_spec)
        if self.skip:
            cursor = cursor.skip(self.skip)
        if self.limit:
            cursor = cursor.limit(self.limit)
        start = time.perf_counter()
        docs = list(cursor)
        logger.debug(
            "Query on %s took %.1f ms (%d documents)",
            self.model.name,
            (time.perf_counter() - start) * 1000,
            len(docs),
        )
        return docs
