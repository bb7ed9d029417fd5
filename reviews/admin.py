from django.contrib import admin

from reviews.models import Review
from reviews.utils import recompute_book_rating


class ReviewAdmin(admin.ModelAdmin):
    list_display = ('book', 'user', 'rating', 'created_at')
    list_filter = ('rating',)
    search_fields = ('book__title', 'user__username', 'content')

    def get_readonly_fields(self, request, obj=None):
        # a review stays on the book it was written for
        return ('book',) if obj else ()

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        recompute_book_rating(obj.book_id)

admin.site.register(Review, ReviewAdmin)
