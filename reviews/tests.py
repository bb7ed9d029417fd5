import json
from itertools import product

from django.contrib.auth.models import User
from django.contrib.sessions.backends.db import SessionStore
from django.core.exceptions import ValidationError
from django.test import TestCase, Client, override_settings

from catalog.models import Book
from quiz.utils import create_question
from quiz.verification import VerificationState
from reviews.exceptions import NotVerified
from reviews.models import Review
from reviews.utils import can_review, recompute_book_rating, admit_review, update_review, delete_review


options_list = ["Option A", "Option B", "Option C", "Option D"]


def make_book(title="Test Book"):
    return Book.objects.create(title=title, author="Test Author", description="A test description",
                               category="Fiction")


def add_quiz(book, correct_options=(1, 0, 2)):
    for number, correct in enumerate(correct_options, start=1):
        create_question(book, f"test_question_{number}", options_list, correct, question_number=number)


class AdmissionGateTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username='testuser', password='password')
        cls.quiz_book = make_book()
        cls.open_book = make_book(title="Book without quiz")
        add_quiz(cls.quiz_book)

    def test_gate_truth_table(self):
        # Allowed iff inline flag, prior verification or no quiz
        for inline, verified, has_quiz in product([False, True], repeat=3):
            session = SessionStore()
            state = VerificationState(session)
            book = AdmissionGateTestCase.quiz_book if has_quiz else AdmissionGateTestCase.open_book

            if verified:
                state.mark_verified(book.pk)

            expected = inline or verified or not has_quiz

            self.assertEqual(can_review(state, book.pk, inline_verified=inline), expected,
                             msg=f"inline={inline} verified={verified} has_quiz={has_quiz}")

    def test_verification_for_other_book_does_not_count(self):
        state = VerificationState(SessionStore())
        other = make_book(title="Other")
        add_quiz(other)
        state.mark_verified(other.pk)
        self.assertFalse(can_review(state, AdmissionGateTestCase.quiz_book.pk))

    def test_admit_review_rejects_unverified(self):
        state = VerificationState(SessionStore())

        with self.assertRaises(NotVerified):
            admit_review(state, AdmissionGateTestCase.quiz_book, AdmissionGateTestCase.test_user, 5, "Great")

        self.assertFalse(Review.objects.exists())

    def test_admit_review_validates_rating(self):
        state = VerificationState(SessionStore())

        with self.assertRaises(ValidationError):
            admit_review(state, AdmissionGateTestCase.open_book, AdmissionGateTestCase.test_user, 6, "Too good")

        self.assertFalse(Review.objects.exists())
        AdmissionGateTestCase.open_book.refresh_from_db()
        self.assertEqual(AdmissionGateTestCase.open_book.total_reviews, 0)

    def test_admit_review_updates_rating(self):
        state = VerificationState(SessionStore())
        state.mark_verified(AdmissionGateTestCase.quiz_book.pk)

        review = admit_review(state, AdmissionGateTestCase.quiz_book, AdmissionGateTestCase.test_user, 4, "Good")

        self.assertEqual(review.rating, 4)
        book = Book.objects.get(pk=AdmissionGateTestCase.quiz_book.pk)
        self.assertEqual(book.average_rating, 4.0)
        self.assertEqual(book.total_reviews, 1)


class RatingAggregatorTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username='testuser', password='password')
        cls.test_book = make_book()

    def add_reviews(self, ratings):
        return [Review.objects.create(book=RatingAggregatorTestCase.test_book, user=RatingAggregatorTestCase.test_user,
                                      rating=rating, content=f"review {rating}") for rating in ratings]

    def test_no_reviews_gives_zero(self):
        summary = recompute_book_rating(RatingAggregatorTestCase.test_book.pk)

        self.assertEqual(summary.average_rating, 0)
        self.assertEqual(summary.total_reviews, 0)

        book = Book.objects.get(pk=RatingAggregatorTestCase.test_book.pk)
        self.assertEqual(book.average_rating, 0)
        self.assertEqual(book.total_reviews, 0)

    def test_mean_and_count_then_delete(self):
        reviews = self.add_reviews([5, 3, 4])

        summary = recompute_book_rating(RatingAggregatorTestCase.test_book.pk)
        self.assertEqual(summary.average_rating, 4.0)
        self.assertEqual(summary.total_reviews, 3)

        delete_review(reviews[1])

        book = Book.objects.get(pk=RatingAggregatorTestCase.test_book.pk)
        self.assertEqual(book.average_rating, 4.5)
        self.assertEqual(book.total_reviews, 2)

        delete_review(reviews[0])
        delete_review(reviews[2])

        book.refresh_from_db()
        self.assertEqual(book.average_rating, 0)
        self.assertEqual(book.total_reviews, 0)

    def test_recompute_is_idempotent(self):
        self.add_reviews([1, 2, 5])

        first = recompute_book_rating(RatingAggregatorTestCase.test_book.pk)
        second = recompute_book_rating(RatingAggregatorTestCase.test_book.pk)

        self.assertEqual(first, second)
        self.assertAlmostEqual(first.average_rating, 8 / 3)

    def test_recompute_repairs_drifted_values(self):
        self.add_reviews([2, 4])
        Book.objects.filter(pk=RatingAggregatorTestCase.test_book.pk).update(average_rating=1.0, total_reviews=99)

        recompute_book_rating(RatingAggregatorTestCase.test_book.pk)

        book = Book.objects.get(pk=RatingAggregatorTestCase.test_book.pk)
        self.assertEqual(book.average_rating, 3.0)
        self.assertEqual(book.total_reviews, 2)

    def test_update_review_recomputes(self):
        reviews = self.add_reviews([5, 3])
        recompute_book_rating(RatingAggregatorTestCase.test_book.pk)

        update_review(reviews[1], rating=1)

        book = Book.objects.get(pk=RatingAggregatorTestCase.test_book.pk)
        self.assertEqual(book.average_rating, 3.0)
        self.assertEqual(book.total_reviews, 2)

    def test_deleting_reviewer_recomputes_book(self):
        other_user = User.objects.create_user(username='otheruser', password='password')
        self.add_reviews([5])
        Review.objects.create(book=RatingAggregatorTestCase.test_book, user=other_user, rating=3,
                              content="review 3")
        recompute_book_rating(RatingAggregatorTestCase.test_book.pk)

        # reviews go with the user
        other_user.delete()

        book = Book.objects.get(pk=RatingAggregatorTestCase.test_book.pk)
        self.assertEqual(book.total_reviews, Review.objects.filter(book=book).count())
        self.assertEqual(book.average_rating, 5.0)
        self.assertEqual(book.total_reviews, 1)

    def test_bulk_delete_recomputes(self):
        self.add_reviews([1, 2, 5])
        recompute_book_rating(RatingAggregatorTestCase.test_book.pk)

        Review.objects.filter(book=RatingAggregatorTestCase.test_book, rating__lt=3).delete()

        book = Book.objects.get(pk=RatingAggregatorTestCase.test_book.pk)
        self.assertEqual(book.average_rating, 5.0)
        self.assertEqual(book.total_reviews, 1)


class ReviewViewsTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username='testuser@gmail.com', email='testuser@gmail.com',
                                                 password='password', first_name='Test User')
        cls.random_user = User.objects.create_user(username='random@gmail.com', email='random@gmail.com',
                                                   password='random')
        cls.admin_user = User.objects.create_user(username='admin@gmail.com', email='admin@gmail.com',
                                                  password='admin123', is_staff=True)

        cls.test_book = make_book()
        cls.open_book = make_book(title="Book without quiz")
        add_quiz(cls.test_book)

    def setUp(self):
        # Every test needs a client.
        self.authenticated_client = Client()
        self.authenticated_client.login(username='testuser@gmail.com', password='password')
        self.random_client = Client()
        self.random_client.login(username='random@gmail.com', password='random')
        self.admin_client = Client()
        self.admin_client.login(username='admin@gmail.com', password='admin123')
        self.unauthenticated_client = Client()

    def send_json(self, client, url, data, method='post'):
        return getattr(client, method)(url, data=json.dumps(data), content_type='application/json')

    def review_url(self, book=None):
        return f'/api/books/{(book or ReviewViewsTestCase.test_book).pk}/reviews'

    def test_verify_then_review_same_session(self):
        pk = ReviewViewsTestCase.test_book.pk

        verify = self.send_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": [1, 0, 2]})
        self.assertTrue(json.loads(str(verify.content, 'utf-8'))['verified'])

        response = self.send_json(self.authenticated_client, self.review_url(), {"rating": 5, "content": "Loved it"})

        self.assertEqual(response.status_code, 201)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['rating'], 5)
        self.assertEqual(content['content'], "Loved it")
        self.assertEqual(content['user'], {"id": ReviewViewsTestCase.test_user.pk, "name": "Test User"})

        book = Book.objects.get(pk=pk)
        self.assertEqual(book.average_rating, 5.0)
        self.assertEqual(book.total_reviews, 1)

    def test_fresh_session_without_verification_is_forbidden(self):
        fresh_client = Client()
        fresh_client.login(username='testuser@gmail.com', password='password')

        response = self.send_json(fresh_client, self.review_url(), {"rating": 5, "content": "Loved it"})

        self.assertEqual(response.status_code, 403)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'],
                         "You must correctly answer the verification questions before reviewing this book")
        self.assertFalse(Review.objects.exists())

    def test_failed_verification_then_review_forbidden(self):
        pk = ReviewViewsTestCase.test_book.pk
        self.send_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": [1, 0, 1]})

        response = self.send_json(self.authenticated_client, self.review_url(), {"rating": 3, "content": "Meh"})
        self.assertEqual(response.status_code, 403)

    def test_inline_verified_flag_accepted(self):
        response = self.send_json(self.authenticated_client, self.review_url(),
                                  {"rating": 4, "content": "Good", "verified": True})
        self.assertEqual(response.status_code, 201)

    @override_settings(BOOKNEST_TRUST_INLINE_VERIFICATION=False)
    def test_inline_verified_flag_ignored_when_untrusted(self):
        response = self.send_json(self.authenticated_client, self.review_url(),
                                  {"rating": 4, "content": "Good", "verified": True})
        self.assertEqual(response.status_code, 403)

    def test_book_without_quiz_needs_no_verification(self):
        response = self.send_json(self.authenticated_client, self.review_url(ReviewViewsTestCase.open_book),
                                  {"rating": 2, "content": "Not for me"})
        self.assertEqual(response.status_code, 201)

    def test_review_out_of_range_rating(self):
        for rating in (0, 6):
            response = self.send_json(self.authenticated_client, self.review_url(),
                                      {"rating": rating, "content": "x", "verified": True})
            self.assertEqual(response.status_code, 400)
            self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'], "Validation error")

        self.assertFalse(Review.objects.exists())

    def test_review_missing_content(self):
        response = self.send_json(self.authenticated_client, self.review_url(), {"rating": 3, "verified": True})
        self.assertEqual(response.status_code, 400)

    def test_review_unauthenticated(self):
        response = self.send_json(self.unauthenticated_client, self.review_url(),
                                  {"rating": 4, "content": "Good", "verified": True})
        self.assertEqual(response.status_code, 401)

    def test_review_book_not_found(self):
        response = self.send_json(self.authenticated_client, '/api/books/9999/reviews',
                                  {"rating": 4, "content": "Good", "verified": True})
        self.assertEqual(response.status_code, 404)

    def test_list_reviews_includes_user_summary(self):
        Review.objects.create(book=ReviewViewsTestCase.test_book, user=ReviewViewsTestCase.test_user,
                              rating=4, content="Good")

        response = self.unauthenticated_client.get(self.review_url())

        self.assertEqual(response.status_code, 200)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(len(content), 1)
        self.assertEqual(content[0]['user']['name'], "Test User")

    def test_owner_updates_review(self):
        review = Review.objects.create(book=ReviewViewsTestCase.test_book, user=ReviewViewsTestCase.test_user,
                                       rating=2, content="Okay")
        recompute_book_rating(ReviewViewsTestCase.test_book.pk)

        response = self.send_json(self.authenticated_client, f'/api/reviews/{review.pk}',
                                  {"rating": 4, "content": "Better on a second read"}, method='put')

        self.assertEqual(response.status_code, 200)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['rating'], 4)
        self.assertEqual(content['content'], "Better on a second read")

        book = Book.objects.get(pk=ReviewViewsTestCase.test_book.pk)
        self.assertEqual(book.average_rating, 4.0)

    def test_update_review_invalid_rating(self):
        review = Review.objects.create(book=ReviewViewsTestCase.test_book, user=ReviewViewsTestCase.test_user,
                                       rating=2, content="Okay")

        response = self.send_json(self.authenticated_client, f'/api/reviews/{review.pk}', {"rating": 9},
                                  method='put')
        self.assertEqual(response.status_code, 400)

        review.refresh_from_db()
        self.assertEqual(review.rating, 2)

    def test_other_user_cannot_update_or_delete_review(self):
        review = Review.objects.create(book=ReviewViewsTestCase.test_book, user=ReviewViewsTestCase.test_user,
                                       rating=2, content="Okay")

        response = self.send_json(self.random_client, f'/api/reviews/{review.pk}', {"rating": 5}, method='put')
        self.assertEqual(response.status_code, 403)

        response = self.random_client.delete(f'/api/reviews/{review.pk}')
        self.assertEqual(response.status_code, 403)

        self.assertTrue(Review.objects.filter(pk=review.pk).exists())

    def test_owner_and_admin_delete_review(self):
        first = Review.objects.create(book=ReviewViewsTestCase.test_book, user=ReviewViewsTestCase.test_user,
                                      rating=5, content="Great")
        second = Review.objects.create(book=ReviewViewsTestCase.test_book, user=ReviewViewsTestCase.test_user,
                                       rating=3, content="Fine")
        recompute_book_rating(ReviewViewsTestCase.test_book.pk)

        response = self.authenticated_client.delete(f'/api/reviews/{second.pk}')
        self.assertEqual(response.status_code, 200)

        book = Book.objects.get(pk=ReviewViewsTestCase.test_book.pk)
        self.assertEqual(book.average_rating, 5.0)
        self.assertEqual(book.total_reviews, 1)

        response = self.admin_client.delete(f'/api/reviews/{first.pk}')
        self.assertEqual(response.status_code, 200)

        book.refresh_from_db()
        self.assertEqual(book.average_rating, 0)
        self.assertEqual(book.total_reviews, 0)

    def test_delete_missing_review(self):
        response = self.authenticated_client.delete('/api/reviews/9999')
        self.assertEqual(response.status_code, 404)

    def test_logout_clears_verification(self):
        pk = ReviewViewsTestCase.test_book.pk
        self.send_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": [1, 0, 2]})
        self.authenticated_client.post('/api/auth/logout')
        self.authenticated_client.login(username='testuser@gmail.com', password='password')

        response = self.send_json(self.authenticated_client, self.review_url(), {"rating": 5, "content": "Loved it"})
        self.assertEqual(response.status_code, 403)
