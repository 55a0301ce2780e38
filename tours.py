"""
Tour routes, including the aggregation reports and the nested review routes.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Path, status

import reviews
from auth import protect, restrict_to
from handler_factory import create_one, delete_one, get_all, get_one, update_one
from models import Tour
from schemas import TourCreate, TourUpdate

router = APIRouter()

TOP_FIVE_CHEAP = {
    "limit": "5",
    "sort": "-ratings_average,price",
    "fields": "name,price,ratings_average,summary,difficulty",
}

admin_only = [Depends(restrict_to("admin"))]


router.add_api_route(
    "/top-5-cheap",
    get_all(Tour, "tours", overrides=TOP_FIVE_CHEAP),
    methods=["GET"],
    summary="Five best rated, cheapest tours",
)


@router.get("/tour-stats", summary="Tour statistics by difficulty")
def get_tour_stats():
    stats = Tour.aggregate(
        [
            {"$match": {"ratings_average": {"$gte": 4.5}}},
            {
                "$group": {
                    "_id": {"$toUpper": "$difficulty"},
                    "num_tours": {"$sum": 1},
                    "num_ratings": {"$sum": "$ratings_quantity"},
                    "avg_rating": {"$avg": "$ratings_average"},
                    "avg_price": {"$avg": "$price"},
                    "min_price": {"$min": "$price"},
                    "max_price": {"$max": "$price"},
                }
            },
            {"$sort": {"avg_price": 1}},
        ]
    )
    return {"status": "success", "data": {"stats": stats}}


@router.get("/monthly-plan/{year}", summary="Tour starts per month")
def get_monthly_plan(year: int = Path(..., ge=1, le=9998)):
    plan = Tour.aggregate(
        [
            {"$unwind": "$start_dates"},
            {
                "$match": {
                    "start_dates": {
                        "$gte": datetime(year, 1, 1),
                        "$lt": datetime(year + 1, 1, 1),
                    }
                }
            },
            {
                "$group": {
                    "_id": {"$month": "$start_dates"},
                    "num_tour_starts": {"$sum": 1},
                    "tours": {"$push": "$name"},
                }
            },
            {"$addFields": {"month": "$_id"}},
            {"$project": {"_id": 0}},
            {"$sort": {"num_tour_starts": -1, "month": 1}},
            {"$limit": 12},
        ]
    )
    return {"status": "success", "data": {"plan": plan}}


router.add_api_route(
    "",
    get_all(Tour, "tours"),
    methods=["GET"],
    dependencies=[Depends(protect)],
    summary="List tours",
)
router.add_api_route(
    "",
    create_one(Tour, "tour", TourCreate),
    methods=["POST"],
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only,
    summary="Create tour",
)
router.add_api_route("/{doc_id}", get_one(Tour, "tour"), methods=["GET"], summary="Get tour")
router.add_api_route(
    "/{doc_id}",
    update_one(Tour, "tour", TourUpdate),
    methods=["PATCH"],
    dependencies=admin_only,
    summary="Update tour",
)
router.add_api_route(
    "/{doc_id}",
    delete_one(Tour),
    methods=["DELETE"],
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=admin_only,
    summary="Delete tour",
)

router.include_router(reviews.router, prefix="/{tour_id}/reviews")
