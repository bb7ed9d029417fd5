import logging

from django.db import IntegrityError, transaction
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods
from pydantic import ValidationError as PydanticValidationError

from accounts.decorators import api_login_required, api_admin_required
from booknest.utils import parse_json_body, json_error, pydantic_errors, InvalidJSONBody
from catalog.forms import BookForm
from catalog.models import Book, ReadingListEntry, LikedBook
from catalog.schemas import ReadingListAdd, ReadingProgressUpdate, LikedBookAdd
from catalog.utils import serialize_book, serialize_reading_list_entry, serialize_liked_book, search_filter


logger = logging.getLogger("booknest")


@require_http_methods(["GET", "POST"])
def books(request):
    if request.method == "POST":
        return create_book(request)

    queryset = Book.objects.all()

    category = request.GET.get("category")
    search = request.GET.get("search")

    if category:
        queryset = queryset.filter(category=category)
    elif search:
        queryset = queryset.filter(search_filter(search))

    return JsonResponse([serialize_book(book) for book in queryset], safe=False)


@api_admin_required
def create_book(request):
    try:
        post_data = parse_json_body(request)
    except InvalidJSONBody as e:
        return json_error(str(e))

    form = BookForm(data=post_data)

    if not form.is_valid():
        logger.error(form.errors)
        return json_error("Validation error", status=400, errors=dict(form.errors))

    book = form.save()
    logger.info(f"Book {book.pk} created by {request.user.pk}")

    return JsonResponse(serialize_book(book), status=201)


@require_http_methods(["GET", "PUT", "DELETE"])
def book_detail(request, pk):
    if request.method == "PUT":
        return update_book(request, pk)
    if request.method == "DELETE":
        return delete_book(request, pk)

    book = get_object_or_404(Book, pk=pk)
    return JsonResponse(serialize_book(book))


@api_admin_required
def update_book(request, pk):
    book = get_object_or_404(Book, pk=pk)

    try:
        post_data = parse_json_body(request)
    except InvalidJSONBody as e:
        return json_error(str(e))

    # Partial update: fields missing from the body keep their current value
    data = model_to_dict(book, fields=BookForm._meta.fields)
    data.update({k: v for k, v in post_data.items() if k in BookForm._meta.fields})

    form = BookForm(data=data, instance=book)

    if not form.is_valid():
        logger.error(form.errors)
        return json_error("Validation error", status=400, errors=dict(form.errors))

    book = form.save()
    return JsonResponse(serialize_book(book))


@api_admin_required
def delete_book(request, pk):
    book = get_object_or_404(Book, pk=pk)

    # Questions, reviews, reading list and liked book rows cascade
    book.delete()
    logger.info(f"Book {pk} deleted by {request.user.pk}")

    return JsonResponse({"message": "Book deleted successfully"})


@require_http_methods(["GET", "POST"])
@api_login_required
def reading_list(request):
    if request.method == "GET":
        entries = ReadingListEntry.objects.filter(user=request.user).select_related('book').order_by('added_at')
        return JsonResponse([serialize_reading_list_entry(entry) for entry in entries], safe=False)

    try:
        payload = ReadingListAdd.model_validate(parse_json_body(request))
    except InvalidJSONBody as e:
        return json_error(str(e))
    except PydanticValidationError as e:
        return json_error("Validation error", status=400, errors=pydantic_errors(e))

    book = get_object_or_404(Book, pk=payload.book_id)

    try:
        with transaction.atomic():
            entry = ReadingListEntry.objects.create(user=request.user, book=book, progress=payload.progress)
    except IntegrityError as e:
        logger.error(e)
        return json_error("Book is already in your reading list", status=400)

    return JsonResponse(serialize_reading_list_entry(entry), status=201)


@require_http_methods(["PUT", "DELETE"])
@api_login_required
def reading_list_entry(request, pk):
    entry = get_object_or_404(ReadingListEntry.objects.select_related('book'), pk=pk, user=request.user)

    if request.method == "DELETE":
        entry.delete()
        return JsonResponse({"message": "Removed from reading list successfully"})

    try:
        payload = ReadingProgressUpdate.model_validate(parse_json_body(request))
    except InvalidJSONBody as e:
        return json_error(str(e))
    except PydanticValidationError as e:
        logger.error(e)
        return json_error("Progress must be a number between 0 and 100", status=400, errors=pydantic_errors(e))

    entry.progress = payload.progress
    entry.save(update_fields=["progress"])

    return JsonResponse(serialize_reading_list_entry(entry))


@require_http_methods(["GET", "POST"])
@api_login_required
def liked_books(request):
    if request.method == "GET":
        liked = LikedBook.objects.filter(user=request.user).select_related('book').order_by('-liked_at')
        return JsonResponse([serialize_liked_book(item) for item in liked], safe=False)

    try:
        payload = LikedBookAdd.model_validate(parse_json_body(request))
    except InvalidJSONBody as e:
        return json_error(str(e))
    except PydanticValidationError as e:
        return json_error("Validation error", status=400, errors=pydantic_errors(e))

    book = get_object_or_404(Book, pk=payload.book_id)

    try:
        with transaction.atomic():
            liked = LikedBook.objects.create(user=request.user, book=book)
    except IntegrityError as e:
        logger.error(e)
        return json_error("Book is already liked", status=400)

    return JsonResponse(serialize_liked_book(liked), status=201)


@require_http_methods(["DELETE"])
@api_login_required
def liked_book_detail(request, pk):
    liked = get_object_or_404(LikedBook, pk=pk, user=request.user)
    liked.delete()
    return JsonResponse({"message": "Removed from liked books successfully"})
