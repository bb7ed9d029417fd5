from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator

from django.contrib.auth.models import User


class Book(models.Model):
    title = models.CharField(max_length=255)
    author = models.CharField(max_length=255)
    publisher = models.CharField(max_length=255, blank=True, null=True)
    published_date = models.CharField(max_length=64, blank=True, null=True)
    description = models.TextField()
    category = models.CharField(max_length=128, db_index=True)
    isbn = models.CharField(max_length=32, blank=True, null=True)
    cover_image = models.URLField(max_length=1024, blank=True, null=True)
    added_at = models.DateTimeField(auto_now_add=True)
    # Maintained by reviews.utils.recompute_book_rating, never edited directly
    average_rating = models.FloatField(default=0)
    total_reviews = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['title', 'pk']

    def __str__(self):
        return self.title


class ReadingListEntry(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE)
    book = models.ForeignKey(Book, on_delete=models.CASCADE)
    added_at = models.DateTimeField(auto_now_add=True)
    progress = models.PositiveSmallIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)])

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'book'], name='unique_reading_list_book_per_user')
        ]


class LikedBook(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE)
    book = models.ForeignKey(Book, on_delete=models.CASCADE)
    liked_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'book'], name='unique_liked_book_per_user')
        ]
