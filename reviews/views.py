import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods
from pydantic import ValidationError as PydanticValidationError

from accounts.decorators import api_login_required
from booknest.utils import parse_json_body, json_error, pydantic_errors, InvalidJSONBody
from catalog.models import Book
from quiz.verification import VerificationState
from reviews.exceptions import NotVerified
from reviews.models import Review
from reviews.schemas import ReviewIn, ReviewUpdate
from reviews.utils import admit_review, update_review, delete_review, can_edit_review, serialize_review

logger = logging.getLogger("booknest")


@require_http_methods(["GET", "POST"])
def book_reviews(request, pk):
    if request.method == "POST":
        return create_review(request, pk)

    book = get_object_or_404(Book, pk=pk)
    reviews = Review.objects.filter(book=book).select_related('user')

    return JsonResponse([serialize_review(review) for review in reviews], safe=False)


@api_login_required
def create_review(request, pk):
    book = get_object_or_404(Book, pk=pk)

    try:
        payload = ReviewIn.model_validate(parse_json_body(request))
    except InvalidJSONBody as e:
        return json_error(str(e))
    except PydanticValidationError as e:
        logger.error(e)
        return json_error("Validation error", status=400, errors=pydantic_errors(e))

    inline_verified = payload.verified and settings.BOOKNEST_TRUST_INLINE_VERIFICATION

    try:
        review = admit_review(VerificationState.for_request(request), book, request.user,
                              rating=payload.rating, content=payload.content, inline_verified=inline_verified)
    except NotVerified as e:
        logger.info(f"User {request.user.pk} not verified for book {book.pk}")
        return json_error(str(e), status=403)
    except ValidationError as e:
        logger.error(e)
        return json_error("Validation error", status=400, errors=e.messages)

    return JsonResponse(serialize_review(review), status=201)


@require_http_methods(["PUT", "DELETE"])
@api_login_required
def review_detail(request, pk):
    review = get_object_or_404(Review.objects.select_related('user'), pk=pk)

    if not can_edit_review(request.user, review):
        return json_error("You are not allowed to change this review.", status=403)

    if request.method == "DELETE":
        delete_review(review)
        return JsonResponse({"message": "Review deleted successfully"})

    try:
        payload = ReviewUpdate.model_validate(parse_json_body(request))
    except InvalidJSONBody as e:
        return json_error(str(e))
    except PydanticValidationError as e:
        logger.error(e)
        return json_error("Validation error", status=400, errors=pydantic_errors(e))

    try:
        review = update_review(review, rating=payload.rating, content=payload.content)
    except ValidationError as e:
        logger.error(e)
        return json_error("Validation error", status=400, errors=e.messages)

    return JsonResponse(serialize_review(review))
