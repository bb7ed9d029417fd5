from django.urls import path

from catalog import views

urlpatterns = [
    path("books", views.books, name="books"),
    path("books/<int:pk>", views.book_detail, name="book_detail"),
    path("reading-list", views.reading_list, name="reading_list"),
    path("reading-list/<int:pk>", views.reading_list_entry, name="reading_list_entry"),
    path("liked-books", views.liked_books, name="liked_books"),
    path("liked-books/<int:pk>", views.liked_book_detail, name="liked_book_detail"),
]
