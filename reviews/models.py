from django.contrib.auth.models import User
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from catalog.models import Book

MIN_RATING = 1
MAX_RATING = 5


class Review(models.Model):
    book = models.ForeignKey(Book, on_delete=models.CASCADE, related_name='reviews')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(
        validators=[
            MinValueValidator(MIN_RATING, message=f"Rating must be at least {MIN_RATING}"),
            MaxValueValidator(MAX_RATING, message=f"Rating cannot exceed {MAX_RATING}"),
        ]
    )
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-pk']

    def __str__(self):
        return f"{self.rating}/5 for {self.book} by {self.user}"
