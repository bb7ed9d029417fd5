from django.contrib.auth.models import User
from django.db.models import Prefetch
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from accounts.decorators import api_admin_required
from accounts.utils import serialize_user, display_name
from catalog.models import Book, ReadingListEntry, LikedBook
from catalog.utils import serialize_reading_list_entry, serialize_liked_book
from reviews.models import Review
from reviews.utils import serialize_review


@require_GET
@api_admin_required
def users(request):
    return JsonResponse([serialize_user(user) for user in User.objects.order_by('pk')], safe=False)


@require_GET
@api_admin_required
def active_users(request):
    queryset = User.objects.filter(is_active=True).order_by('pk')
    return JsonResponse([serialize_user(user) for user in queryset], safe=False)


@require_GET
@api_admin_required
def user_reading_lists(request):
    entries = ReadingListEntry.objects.select_related('book').order_by('added_at')
    queryset = User.objects.order_by('pk').prefetch_related(
        Prefetch('readinglistentry_set', queryset=entries, to_attr='reading_list'))

    data = [
        {
            "user_id": user.pk,
            "user_name": display_name(user),
            "reading_list": [serialize_reading_list_entry(entry) for entry in user.reading_list],
        }
        for user in queryset
    ]

    return JsonResponse(data, safe=False)


@require_GET
@api_admin_required
def user_liked_books(request):
    liked = LikedBook.objects.select_related('book').order_by('-liked_at')
    queryset = User.objects.order_by('pk').prefetch_related(
        Prefetch('likedbook_set', queryset=liked, to_attr='liked'))

    data = [
        {
            "user_id": user.pk,
            "user_name": display_name(user),
            "liked_books": [serialize_liked_book(item) for item in user.liked],
        }
        for user in queryset
    ]

    return JsonResponse(data, safe=False)


@require_GET
@api_admin_required
def all_reviews(request):
    # newest first
    reviews = Review.objects.select_related('user', 'book').order_by('-created_at', '-pk')
    return JsonResponse([serialize_review(review, include_book=True) for review in reviews], safe=False)


@require_GET
@api_admin_required
def stats(request):
    return JsonResponse({
        "total_users": User.objects.count(),
        "active_users": User.objects.filter(is_active=True).count(),
        "total_books": Book.objects.count(),
        "total_reviews": Review.objects.count(),
    })
