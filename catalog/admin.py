from django.contrib import admin

from catalog.models import Book, ReadingListEntry, LikedBook


class BookAdmin(admin.ModelAdmin):
    list_display = ('title', 'author', 'category', 'average_rating', 'total_reviews')
    list_filter = ('category',)
    search_fields = ('title', 'author', 'isbn')
    readonly_fields = ('average_rating', 'total_reviews')


class ReadingListEntryAdmin(admin.ModelAdmin):
    list_display = ('book', 'user', 'progress')
    list_filter = ('user',)
    search_fields = ('book__title', 'user__username')


class LikedBookAdmin(admin.ModelAdmin):
    list_display = ('book', 'user', 'liked_at')
    list_filter = ('user',)
    search_fields = ('book__title', 'user__username')


admin.site.register(Book, BookAdmin)
admin.site.register(ReadingListEntry, ReadingListEntryAdmin)
admin.site.register(LikedBook, LikedBookAdmin)
