"""
Tests for the review routes and tour rating recalculation.
"""

import pytest

from models import Tour


@pytest.fixture
def tour(make_tour):
    return make_tour()


class TestCreateReview:
    def test_create_nested_under_tour(self, client, user, user_headers, tour):
        response = client.post(
            f"/api/v1/tours/{tour['_id']}/reviews",
            json={"review": "Amazing experience!", "rating": 5},
            headers=user_headers,
        )

        assert response.status_code == 201
        review = response.json()["data"]["review"]
        assert review["review"] == "Amazing experience!"
        assert review["tour"] == str(tour["_id"])
        assert review["user"] == str(user["_id"])

    def test_create_with_tour_in_body(self, client, user_headers, tour):
        response = client.post(
            "/api/v1/reviews",
            json={"review": "Pretty good", "rating": 4, "tour": str(tour["_id"])},
            headers=user_headers,
        )

        assert response.status_code == 201

    def test_create_without_tour(self, client, user_headers):
        response = client.post("/api/v1/reviews", json={"review": "Nice", "rating": 4}, headers=user_headers)

        assert response.status_code == 400

    def test_create_for_unknown_tour(self, client, user_headers):
        response = client.post(
            "/api/v1/tours/5c88fa8cf4afda39709c2951/reviews",
            json={"review": "Nice", "rating": 4},
            headers=user_headers,
        )

        assert response.status_code == 404

    def test_create_requires_login(self, client, tour):
        response = client.post(
            f"/api/v1/tours/{tour['_id']}/reviews", json={"review": "Nice", "rating": 4}
        )

        assert response.status_code == 401

    def test_admins_cannot_review(self, client, admin_headers, tour):
        response = client.post(
            f"/api/v1/tours/{tour['_id']}/reviews",
            json={"review": "Nice", "rating": 4},
            headers=admin_headers,
        )

        assert response.status_code == 403

    def test_rating_out_of_range(self, client, user_headers, tour):
        response = client.post(
            f"/api/v1/tours/{tour['_id']}/reviews",
            json={"review": "Nice", "rating": 6},
            headers=user_headers,
        )

        assert response.status_code == 400

    def test_one_review_per_tour_and_user(self, client, user_headers, tour):
        url = f"/api/v1/tours/{tour['_id']}/reviews"
        client.post(url, json={"review": "First", "rating": 4}, headers=user_headers)

        response = client.post(url, json={"review": "Second", "rating": 5}, headers=user_headers)

        assert response.status_code == 400


class TestListReviews:
    def test_nested_list_is_scoped_to_tour(
        self, client, make_user, headers_for, make_tour
    ):
        first = make_tour(name="The Forest Hiker")
        second = make_tour(name="The Sea Explorer")
        author = make_user(email="author@example.com")
        headers = headers_for(author)
        client.post(f"/api/v1/tours/{first['_id']}/reviews", json={"review": "A", "rating": 4}, headers=headers)
        client.post(f"/api/v1/tours/{second['_id']}/reviews", json={"review": "B", "rating": 3}, headers=headers)

        nested = client.get(f"/api/v1/tours/{first['_id']}/reviews")
        everything = client.get("/api/v1/reviews")

        assert nested.status_code == 200
        assert [r["review"] for r in nested.json()["data"]["reviews"]] == ["A"]
        assert everything.json()["results"] == 2

    def test_filter_by_rating(self, client, make_user, headers_for, tour):
        for i, rating in enumerate([2, 5]):
            author = make_user(email=f"author{i}@example.com")
            client.post(
                f"/api/v1/tours/{tour['_id']}/reviews",
                json={"review": f"Review {i}", "rating": rating},
                headers=headers_for(author),
            )

        response = client.get("/api/v1/reviews?rating[gte]=4")

        assert [r["rating"] for r in response.json()["data"]["reviews"]] == [5]


class TestRatingsAverage:
    def test_reviews_update_tour_ratings(self, client, make_user, headers_for, tour):
        for i, rating in enumerate([4, 5, 5]):
            author = make_user(email=f"author{i}@example.com")
            client.post(
                f"/api/v1/tours/{tour['_id']}/reviews",
                json={"review": f"Review {i}", "rating": rating},
                headers=headers_for(author),
            )

        stored = Tour.find_by_id(tour["_id"])
        assert stored["ratings_quantity"] == 3
        assert stored["ratings_average"] == 4.7

    def test_deleting_last_review_resets_ratings(self, client, user_headers, admin_headers, tour):
        created = client.post(
            f"/api/v1/tours/{tour['_id']}/reviews",
            json={"review": "Meh", "rating": 2},
            headers=user_headers,
        ).json()["data"]["review"]

        response = client.delete(f"/api/v1/reviews/{created['id']}", headers=admin_headers)

        assert response.status_code == 204
        stored = Tour.find_by_id(tour["_id"])
        assert stored["ratings_quantity"] == 0
        assert stored["ratings_average"] == 4.5

    def test_updating_review_recalculates(self, client, user_headers, tour):
        created = client.post(
            f"/api/v1/tours/{tour['_id']}/reviews",
            json={"review": "Meh", "rating": 2},
            headers=user_headers,
        ).json()["data"]["review"]

        response = client.patch(
            f"/api/v1/reviews/{created['id']}", json={"rating": 4}, headers=user_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["review"]["rating"] == 4
        assert Tour.find_by_id(tour["_id"])["ratings_average"] == 4


class TestGetReview:
    def test_get_review(self, client, user_headers, tour):
        created = client.post(
            f"/api/v1/tours/{tour['_id']}/reviews",
            json={"review": "Lovely", "rating": 5},
            headers=user_headers,
        ).json()["data"]["review"]

        response = client.get(f"/api/v1/reviews/{created['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["review"]["review"] == "Lovely"


def _post_review(client, tour, headers, text="Nice", rating=4):
    return client.post(
        f"/api/v1/tours/{tour['_id']}/reviews",
        json={"review": text, "rating": rating},
        headers=headers,
    ).json()["data"]["review"]


class TestTourScope:
    def test_query_string_cannot_widen_nested_list(self, client, make_tour, user_headers):
        first = make_tour(name="The Forest Hiker")
        second = make_tour(name="The Sea Explorer")
        _post_review(client, second, user_headers)

        for query in ("tour[ne]=x", f"tour={second['_id']}"):
            response = client.get(f"/api/v1/tours/{first['_id']}/reviews?{query}")

            assert response.status_code == 200
            assert response.json()["results"] == 0

    def test_review_of_other_tour_not_reachable_through_wrong_tour(
        self, client, make_tour, user_headers, admin_headers
    ):
        first = make_tour(name="The Forest Hiker")
        second = make_tour(name="The Sea Explorer")
        review = _post_review(client, second, user_headers)
        wrong_url = f"/api/v1/tours/{first['_id']}/reviews/{review['id']}"

        assert client.get(wrong_url).status_code == 404
        assert client.patch(wrong_url, json={"rating": 1}, headers=user_headers).status_code == 404
        assert client.delete(wrong_url, headers=admin_headers).status_code == 404
        assert client.get(f"/api/v1/tours/{second['_id']}/reviews/{review['id']}").status_code == 200


class TestReviewOwnership:
    def test_user_cannot_change_someone_elses_review(self, client, tour, make_user, headers_for, user_headers):
        review = _post_review(client, tour, user_headers)
        other = headers_for(make_user(email="other@example.com"))

        patched = client.patch(f"/api/v1/reviews/{review['id']}", json={"rating": 1}, headers=other)
        deleted = client.delete(f"/api/v1/reviews/{review['id']}", headers=other)

        assert patched.status_code == 403
        assert deleted.status_code == 403
        assert client.get(f"/api/v1/reviews/{review['id']}").json()["data"]["review"]["rating"] == 4

    def test_author_can_delete_own_review(self, client, tour, user_headers):
        review = _post_review(client, tour, user_headers)

        response = client.delete(f"/api/v1/reviews/{review['id']}", headers=user_headers)

        assert response.status_code == 204
