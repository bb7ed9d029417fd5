"""
Review admission and book rating maintenance.

A review is admitted when the reviewer has shown they read the book: either
the quiz was passed earlier in the session, the request itself carries a
verified flag, or the book has no quiz at all. Every review write is followed
by a full recomputation of the book's average rating and review count in the
same transaction.
"""
import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import Avg, Count

from accounts.utils import user_summary
from catalog.models import Book
from quiz.models import VerificationQuestion
from reviews.exceptions import NotVerified
from reviews.models import Review


logger = logging.getLogger("booknest")


@dataclass(frozen=True)
class RatingSummary:
    average_rating: float
    total_reviews: int


def can_review(state, book_id, inline_verified: bool = False) -> bool:
    if inline_verified:
        return True

    if state is not None and state.is_verified(book_id):
        return True

    # Nothing to pass when the book has no quiz
    return not VerificationQuestion.objects.filter(book_id=book_id).exists()


def recompute_book_rating(book_id) -> RatingSummary:
    """
    Recalculate the mean rating and review count of a book from its reviews.
    """
    stats = Review.objects.filter(book_id=book_id).aggregate(average=Avg('rating'), count=Count('id'))

    total_reviews = stats['count']
    average_rating = float(stats['average']) if total_reviews else 0.0

    Book.objects.filter(pk=book_id).update(average_rating=average_rating, total_reviews=total_reviews)

    logger.debug(f"Book {book_id} rating recomputed: {average_rating} over {total_reviews} reviews")

    return RatingSummary(average_rating=average_rating, total_reviews=total_reviews)


def admit_review(state, book, user, rating: int, content: str, inline_verified: bool = False) -> Review:
    if not can_review(state, book.pk, inline_verified=inline_verified):
        raise NotVerified(book.pk)

    with transaction.atomic():
        review = Review(book=book, user=user, rating=rating, content=content)
        review.full_clean()
        review.save()
        recompute_book_rating(book.pk)

    logger.info(f"Review {review.pk} created for book {book.pk} by user {user.pk}")

    return review


def update_review(review, rating=None, content=None) -> Review:
    if rating is not None:
        review.rating = rating
    if content is not None:
        review.content = content

    with transaction.atomic():
        review.full_clean()
        review.save()
        recompute_book_rating(review.book_id)

    return review


def delete_review(review):
    book_id = review.book_id

    # the post_delete receiver recomputes the rating inside this transaction
    with transaction.atomic():
        review.delete()

    logger.info(f"Review deleted from book {book_id}")


def can_edit_review(user, review) -> bool:
    return user.is_staff or review.user_id == user.pk


def serialize_review(review, include_book=False):
    data = {
        "id": review.pk,
        "book_id": review.book_id,
        "user_id": review.user_id,
        "rating": review.rating,
        "content": review.content,
        "created_at": review.created_at.isoformat(),
        "updated_at": review.updated_at.isoformat(),
        "user": user_summary(review.user),
    }

    if include_book:
        data["book"] = {"id": review.book.pk, "title": review.book.title}

    return data
