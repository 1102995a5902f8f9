import json

import pytest


def _add(client, **data):
    return client.post(
        "/api/reviews/add", data=json.dumps(data), content_type="application/json"
    )


@pytest.mark.review
class TestAddReview:
    """Test suite for posting reviews."""

    def test_add_review_links_known_username(self, client, barber, customer):
        response = _add(client, barberId=barber, rating=5, comment="Mantap", username="andi")

        assert response.status_code == 201
        review = json.loads(response.data)["review"]
        assert review["user_id"] == customer
        assert review["userName"] == "andi"
        assert review["barberName"] == "Budi Barber"
        assert review["rating"] == 5

    def test_add_review_without_username(self, client, barber):
        response = _add(client, barberId=barber, rating="4", comment="Good cut")

        assert response.status_code == 201
        review = json.loads(response.data)["review"]
        assert review["user_id"] is None
        assert review["rating"] == 4

    def test_unknown_username_is_kept_unlinked(self, client, barber):
        response = _add(client, barberId=barber, rating=3, comment="Ok", username="ghost")

        review = json.loads(response.data)["review"]
        assert review["username"] == "ghost"
        assert review["user_id"] is None

    @pytest.mark.parametrize("rating", [0, 6, "abc", 2.5])
    def test_rating_out_of_range(self, client, barber, rating):
        response = _add(client, barberId=barber, rating=rating, comment="Hmm")
        assert response.status_code == 400

    def test_missing_comment(self, client, barber):
        response = _add(client, barberId=barber, rating=5)
        assert response.status_code == 400

    def test_unknown_barber(self, client):
        response = _add(client, barberId=99999, rating=5, comment="Nice")
        assert response.status_code == 404


@pytest.mark.review
class TestReadReviews:
    """Test suite for reading reviews."""

    def test_reviews_for_barber(self, client, barber):
        _add(client, barberId=barber, rating=5, comment="First")
        _add(client, barberId=barber, rating=4, comment="Second")

        response = client.get(f"/api/reviews/{barber}")

        assert response.status_code == 200
        assert {r["comment"] for r in json.loads(response.data)} == {"First", "Second"}

    def test_no_reviews_for_barber(self, client, barber):
        response = client.get(f"/api/reviews/{barber}")
        assert response.status_code == 404

    def test_all_reviews(self, client, barber):
        _add(client, barberId=barber, rating=5, comment="Great")

        response = client.get("/api/reviews/")

        assert response.status_code == 200
        assert len(json.loads(response.data)) == 1

    def test_review_by_id(self, client, barber):
        review_id = _add(client, barberId=barber, rating=5, comment="Great").get_json()["review"]["id"]

        response = client.get(f"/api/reviews/review/{review_id}")

        assert response.status_code == 200
        assert json.loads(response.data)["comment"] == "Great"

    def test_review_by_id_nonexistent(self, client):
        response = client.get("/api/reviews/review/99999")
        assert response.status_code == 404


@pytest.mark.review
class TestUpdateDeleteReviews:
    """Test suite for bulk update and deletion."""

    def test_update_overwrites_all_reviews_of_barber(self, client, barber):
        _add(client, barberId=barber, rating=1, comment="Bad")
        _add(client, barberId=barber, rating=2, comment="Meh")

        response = client.put(
            f"/api/reviews/{barber}",
            data=json.dumps({"rating": 5, "comment": "Much better"}),
            content_type="application/json",
        )

        assert response.status_code == 200
        assert json.loads(response.data)["updated"] == 2
        reviews = client.get(f"/api/reviews/{barber}").get_json()
        assert {(r["rating"], r["comment"]) for r in reviews} == {(5, "Much better")}

    def test_update_without_reviews(self, client, barber):
        response = client.put(
            f"/api/reviews/{barber}",
            data=json.dumps({"rating": 5, "comment": "Nice"}),
            content_type="application/json",
        )
        assert response.status_code == 404

    def test_update_requires_rating_and_comment(self, client, barber):
        _add(client, barberId=barber, rating=1, comment="Bad")

        response = client.put(
            f"/api/reviews/{barber}",
            data=json.dumps({"comment": "No rating"}),
            content_type="application/json",
        )
        assert response.status_code == 400

    def test_delete_review(self, client, barber):
        review_id = _add(client, barberId=barber, rating=5, comment="Great").get_json()["review"]["id"]

        response = client.delete(f"/api/reviews/{review_id}")

        assert response.status_code == 200
        assert client.get(f"/api/reviews/review/{review_id}").status_code == 404

    def test_delete_nonexistent(self, client):
        response = client.delete("/api/reviews/99999")
        assert response.status_code == 404


@pytest.mark.review
class TestReviewInputTypes:
    """Test suite for badly typed review requests."""

    def test_non_string_comment(self, client, barber):
        response = _add(client, barberId=barber, rating=4, comment={"text": "Nice"})

        assert response.status_code == 400
        assert "comment" in json.loads(response.data)["errors"]
        assert client.get(f"/api/reviews/{barber}").status_code == 404

    def test_non_string_username(self, client, barber):
        response = _add(client, barberId=barber, rating=4, comment="Nice", username=42)

        assert response.status_code == 400
        assert "username" in json.loads(response.data)["errors"]

    def test_comment_too_long(self, client, barber):
        response = _add(client, barberId=barber, rating=4, comment="x" * 501)
        assert response.status_code == 400

    def test_invalid_barber_id(self, client, barber):
        response = _add(client, barberId={"id": barber}, rating=4, comment="Nice")

        assert response.status_code == 400
        assert "barberId" in json.loads(response.data)["errors"]

    def test_body_must_be_an_object(self, client):
        response = client.post(
            "/api/reviews/add", data=json.dumps([1]), content_type="application/json"
        )
        assert response.status_code == 400

    def test_bulk_update_non_string_comment(self, client, barber):
        _add(client, barberId=barber, rating=5, comment="Great")

        response = client.put(
            f"/api/reviews/{barber}",
            data=json.dumps({"rating": 3, "comment": ["meh"]}),
            content_type="application/json",
        )

        assert response.status_code == 400
        [review] = client.get(f"/api/reviews/{barber}").get_json()
        assert review["comment"] == "Great"
