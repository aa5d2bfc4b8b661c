"""
HTTP tests for the catalogue pages, review form and admin mutations.
"""
from sqlmodel import select

from app.models.book import Book
from app.models.review import Review
from app.services.cache import book_cache_key


class TestRoot:
    def test_redirects_to_books(self, client):
        response = client.get("/", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/books"


class TestBookList:
    def test_empty_search_shows_empty_state(self, client, make_book):
        make_book(title="Dune")

        response = client.get("/books", params={"title": "Necronomicon"})

        assert response.status_code == 200
        assert "No books found" in response.text

    def test_lists_books_with_stats(self, client, make_book):
        make_book(title="Dune", ratings=[5, 4, 3])
        make_book(title="Unread Novel")

        response = client.get("/books")

        assert response.status_code == 200
        assert "Dune" in response.text
        assert "4.0" in response.text
        assert "out of 3 reviews" in response.text
        assert "N/A" in response.text

    def test_preset_filter(self, client, make_book):
        make_book(title="Dune", ratings=[5, 4, 3])
        make_book(title="Lonely", ratings=[5])

        response = client.get("/books", params={"filter": "highest_rated_last_month"})

        assert "Dune" in response.text
        assert "Lonely" not in response.text
        assert 'class="filter-item-active"' in response.text

    def test_unknown_filter_uses_latest(self, client, make_book):
        make_book(title="Lonely", ratings=[5])

        response = client.get("/books", params={"filter": "bogus"})

        assert response.status_code == 200
        assert "Lonely" in response.text

    def test_title_and_filter_combined(self, client, make_book):
        make_book(title="Dune", ratings=[5, 4, 3])
        make_book(title="Hyperion", ratings=[5, 5, 5])

        response = client.get("/books", params={"title": "Hyp", "filter": "popular_last_month"})

        assert "Hyperion" in response.text
        assert "Dune" not in response.text


class TestBookDetail:
    def test_missing_book_is_404_and_not_cached(self, client, cache):
        response = client.get("/books/999")

        assert response.status_code == 404
        assert cache.get(book_cache_key(999)) is None

    def test_detail_is_cached(self, client, cache, make_book):
        book = make_book(title="Dune", ratings=[5, 4, 3])

        response = client.get(f"/books/{book.id}")

        assert response.status_code == 200
        assert "Dune" in response.text
        assert "3 reviews" in response.text
        assert cache.get(book_cache_key(book.id))["reviews_count"] == 3

    def test_repeat_reads_render_identically(self, client, make_book):
        book = make_book(title="Dune", ratings=[5, 4])

        first = client.get(f"/books/{book.id}")
        second = client.get(f"/books/{book.id}")

        assert first.text == second.text

    def test_update_evicts_cache(self, client, cache, make_book):
        book = make_book(title="Dune", ratings=[5])
        client.get(f"/books/{book.id}")

        response = client.put(f"/admin/books/{book.id}", json={"title": "Children of Dune"})

        assert response.status_code == 200
        assert cache.get(book_cache_key(book.id)) is None
        assert "Children of Dune" in client.get(f"/books/{book.id}").text

    def test_delete_evicts_cache(self, client, cache, make_book):
        book = make_book(title="Dune", ratings=[5])
        client.get(f"/books/{book.id}")

        response = client.delete(f"/admin/books/{book.id}")

        assert response.status_code == 200
        assert cache.get(book_cache_key(book.id)) is None
        assert client.get(f"/books/{book.id}").status_code == 404


class TestReviews:
    def test_form_renders(self, client, make_book):
        book = make_book(title="Dune")

        response = client.get(f"/books/{book.id}/reviews/create")

        assert response.status_code == 200
        assert "Add Review for Dune" in response.text

    def test_form_for_missing_book_is_404(self, client):
        assert client.get("/books/999/reviews/create").status_code == 404

    def test_store_review_redirects_and_evicts(self, client, cache, session, make_book):
        book = make_book(title="Dune", ratings=[5])
        client.get(f"/books/{book.id}")

        response = client.post(
            f"/books/{book.id}/reviews",
            data={"rating": "3", "review": "  Sandy but good.  "},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == f"/books/{book.id}"
        assert cache.get(book_cache_key(book.id)) is None

        reviews = session.exec(select(Review).where(Review.book_id == book.id)).all()
        assert len(reviews) == 2
        assert any(r.review == "Sandy but good." and r.rating == 3 for r in reviews)

        detail = client.get(f"/books/{book.id}")
        assert "2 reviews" in detail.text
        assert "4.0" in detail.text

    def test_invalid_review_rerenders_with_errors(self, client, session, make_book):
        book = make_book(title="Dune")

        response = client.post(
            f"/books/{book.id}/reviews",
            data={"rating": "9", "review": "   "},
        )

        assert response.status_code == 422
        assert "The review field is required" in response.text
        assert "less than or equal to 5" in response.text
        assert session.exec(select(Review)).all() == []

    def test_invalid_review_keeps_input(self, client, make_book):
        book = make_book(title="Dune")

        response = client.post(
            f"/books/{book.id}/reviews",
            data={"rating": "4", "review": ""},
        )

        assert response.status_code == 422
        assert 'value="4" selected' in response.text

    def test_review_for_missing_book_is_404(self, client):
        response = client.post("/books/999/reviews", data={"rating": "5", "review": "Great"})

        assert response.status_code == 404

    def test_show_review(self, client, session, make_book):
        book = make_book(title="Dune", ratings=[4])
        review = session.exec(select(Review).where(Review.book_id == book.id)).first()

        response = client.get(f"/books/{book.id}/reviews/{review.id}")

        assert response.status_code == 200
        assert review.review in response.text

    def test_show_review_scoped_to_book(self, client, session, make_book):
        dune = make_book(title="Dune", ratings=[4])
        other = make_book(title="Hyperion")
        review = session.exec(select(Review).where(Review.book_id == dune.id)).first()

        response = client.get(f"/books/{other.id}/reviews/{review.id}")

        assert response.status_code == 404


class TestAdminBooks:
    def test_create_book(self, client):
        response = client.post("/admin/books/", json={"title": "Dune", "author": "Frank Herbert"})

        assert response.status_code == 201
        assert response.json()["title"] == "Dune"

    def test_create_book_validates(self, client):
        response = client.post("/admin/books/", json={"title": "", "author": "Frank Herbert"})

        assert response.status_code == 422

    def test_update_missing_book(self, client):
        assert client.put("/admin/books/999", json={"title": "X"}).status_code == 404


def test_health_check(client, cache, make_book):
    make_book(title="Dune", ratings=[5, 4])

    response = client.get("/health/check")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "ok"
    assert body["cache"]["status"] == "ok"
    assert body["catalogue"] == {"books": 1, "reviews": 2}
    assert cache.get("health:check") is None


def test_storing_review_touches_book(client, session, make_book):
    book = make_book(title="Dune")
    before = book.updated_at

    client.post(f"/books/{book.id}/reviews", data={"rating": "5", "review": "Spice."})
    session.expire_all()

    assert session.get(Book, book.id).updated_at > before
