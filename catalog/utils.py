from django.db.models import Q


def serialize_book(book):
    return {
        "id": book.pk,
        "title": book.title,
        "author": book.author,
        "publisher": book.publisher,
        "published_date": book.published_date,
        "description": book.description,
        "category": book.category,
        "isbn": book.isbn,
        "cover_image": book.cover_image,
        "added_at": book.added_at.isoformat(),
        "average_rating": book.average_rating,
        "total_reviews": book.total_reviews,
    }


def serialize_reading_list_entry(entry):
    return {
        "id": entry.pk,
        "user_id": entry.user_id,
        "book_id": entry.book_id,
        "added_at": entry.added_at.isoformat(),
        "progress": entry.progress,
        "book": serialize_book(entry.book),
    }


def serialize_liked_book(liked):
    return {
        "id": liked.pk,
        "user_id": liked.user_id,
        "book_id": liked.book_id,
        "liked_at": liked.liked_at.isoformat(),
        "book": serialize_book(liked.book),
    }


def search_filter(query: str):
    return Q(title__icontains=query) | Q(author__icontains=query) | Q(description__icontains=query)
