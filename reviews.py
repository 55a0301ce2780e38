"""
Review routes.

Mounted at ``/api/v1/reviews`` and again under ``/api/v1/tours/{tour_id}/reviews``,
where every read and write is scoped to that tour.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response, status

from auth import restrict_to
from database import to_object_id
from errors import AppError
from handler_factory import NOT_FOUND, get_all, get_one
from models import Review, Tour
from schemas import ReviewCreate, ReviewUpdate

router = APIRouter()


def tour_criteria(request: Request) -> Dict[str, Any]:
    tour_id = request.path_params.get("tour_id")
    if tour_id is None:
        return {}
    return {"tour": to_object_id(tour_id)}


router.add_api_route(
    "",
    get_all(Review, "reviews", criteria_from=tour_criteria),
    methods=["GET"],
    summary="List reviews",
)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create review")
def create_review(
    payload: ReviewCreate,
    request: Request,
    current_user: Dict[str, Any] = Depends(restrict_to("user")),
):
    tour_id = request.path_params.get("tour_id") or payload.tour
    if not tour_id:
        raise AppError("A review must belong to a tour!", 400)
    if Tour.find_by_id(tour_id) is None:
        raise AppError("No tour found with that ID.", 404)

    review = Review.create(
        {
            "review": payload.review,
            "rating": payload.rating,
            "tour": tour_id,
            "user": current_user["_id"],
        }
    )
    return {"status": "success", "data": {"review": Review.to_public(review)}}


router.add_api_route(
    "/{doc_id}",
    get_one(Review, "review", criteria_from=tour_criteria),
    methods=["GET"],
    summary="Get review",
)


def writable_review(doc_id: str, request: Request, current_user: Dict[str, Any]) -> Dict[str, Any]:
    """The review behind ``doc_id`` if the caller may change it."""
    review = Review.find_by_id(doc_id, criteria=tour_criteria(request))
    if review is None:
        raise AppError(NOT_FOUND, 404)
    if current_user.get("role") != "admin" and review["user"] != current_user["_id"]:
        raise AppError("You can only change your own reviews.", 403)
    return review


@router.patch("/{doc_id}", summary="Update review")
def update_review(
    doc_id: str,
    payload: ReviewUpdate,
    request: Request,
    current_user: Dict[str, Any] = Depends(restrict_to("user", "admin")),
):
    review = writable_review(doc_id, request, current_user)
    updated = Review.update_by_id(review["_id"], payload.model_dump(exclude_unset=True, exclude_none=True))
    if updated is None:
        raise AppError(NOT_FOUND, 404)
    return {"status": "success", "data": {"review": Review.to_public(updated)}}


@router.delete("/{doc_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete review")
def delete_review(
    doc_id: str,
    request: Request,
    current_user: Dict[str, Any] = Depends(restrict_to("user", "admin")),
):
    review = writable_review(doc_id, request, current_user)
    Review.delete_by_id(review["_id"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
