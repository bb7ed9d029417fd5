from django.db.models.signals import post_delete
from django.dispatch import receiver

from catalog.models import Book
from reviews.models import Review
from reviews.utils import recompute_book_rating


@receiver(post_delete, sender=Review, dispatch_uid="reviews_recompute_on_delete")
def recompute_rating_on_review_delete(sender, instance, origin=None, **kwargs):
    """
    Keep the book rating in step with every review removal, including cascades
    from a deleted user and bulk deletes from the admin.
    """
    # the book is going away with its reviews
    if isinstance(origin, Book) or getattr(origin, 'model', None) is Book:
        return

    recompute_book_rating(instance.book_id)
