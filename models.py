"""
The API's collections and their document hooks.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Union

from bson import ObjectId
from slugify import slugify

from database import DocumentCollection, get_db, to_object_id, utcnow
from errors import AppError
from security import get_password_hash

logger = logging.getLogger(__name__)

DEFAULT_RATINGS_AVERAGE = 4.5


class TourCollection(DocumentCollection):
    def __init__(self):
        super().__init__(
            "tours",
            base_filter={"secret_tour": {"$ne": True}},
            hidden_fields=("created_at",),
        )

    def before_insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data["slug"] = slugify(data["name"])
        data.setdefault("created_at", utcnow())
        return data

    def before_update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        if changes.get("name"):
            changes["slug"] = slugify(changes["name"])
        return changes

    def update_by_id(self, doc_id, changes):
        discount = changes.get("price_discount")
        if discount is not None and changes.get("price") is None:
            stored = self.find_by_id(doc_id)
            if stored is not None and discount >= stored.get("price", 0):
                raise AppError(f"Discount price ({discount}) should be below regular price.", 400)
        return super().update_by_id(doc_id, changes)

    def to_public(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        public = super().to_public(doc)
        if public.get("duration") is not None:
            public["duration_weeks"] = public["duration"] / 7
        return public


class UserCollection(DocumentCollection):
    def __init__(self):
        super().__init__(
            "users",
            base_filter={"active": {"$ne": False}},
            hidden_fields=("password", "password_reset_token", "password_reset_expires", "active"),
        )

    def before_insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data["email"] = data["email"].lower()
        data["password"] = get_password_hash(data["password"])
        data.pop("password_confirm", None)
        data.setdefault("role", "user")
        data.setdefault("active", True)
        data.setdefault("created_at", utcnow())
        return data

    def before_update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        if changes.get("email"):
            changes["email"] = changes["email"].lower()
        return changes

    def set_password(self, user_id: Union[str, ObjectId], password: str) -> None:
        """Store a new password hash, stamp the change and drop any reset token."""
        # one second back so tokens issued right after the change stay valid
        self.set_fields(
            user_id,
            values={
                "password": get_password_hash(password),
                "password_changed_at": utcnow() - timedelta(seconds=1),
            },
            unset=("password_reset_token", "password_reset_expires"),
        )


class ReviewCollection(DocumentCollection):
    def __init__(self):
        super().__init__("reviews")

    def before_insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data["tour"] = to_object_id(data["tour"])
        data["user"] = to_object_id(data["user"])
        data.setdefault("created_at", utcnow())
        return data

    def calc_average_ratings(self, tour_id: ObjectId) -> None:
        stats = list(
            self.collection.aggregate(
                [
                    {"$match": {"tour": tour_id}},
                    {
                        "$group": {
                            "_id": "$tour",
                            "n_rating": {"$sum": 1},
                            "avg_rating": {"$avg": "$rating"},
                        }
                    },
                ]
            )
        )
        if stats:
            values = {
                "ratings_quantity": stats[0]["n_rating"],
                "ratings_average": round(stats[0]["avg_rating"], 1),
            }
        else:
            values = {"ratings_quantity": 0, "ratings_average": DEFAULT_RATINGS_AVERAGE}
        get_db()["tours"].update_one({"_id": tour_id}, {"$set": values})
        logger.debug("Recalculated ratings for tour %s: %s", tour_id, values)

    def create(self, data: Dict[str, Any]) -> dict:
        doc = super().create(data)
        self.calc_average_ratings(doc["tour"])
        return doc

    def update_by_id(self, doc_id, changes):
        doc = super().update_by_id(doc_id, changes)
        if doc is not None:
            self.calc_average_ratings(doc["tour"])
        return doc

    def delete_by_id(self, doc_id):
        doc = super().delete_by_id(doc_id)
        if doc is not None:
            self.calc_average_ratings(doc["tour"])
        return doc


Tour = TourCollection()
User = UserCollection()
Review = ReviewCollection()
