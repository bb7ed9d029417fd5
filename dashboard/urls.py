from django.urls import path

from dashboard import views

urlpatterns = [
    path("users", views.users, name="admin_users"),
    path("active-users", views.active_users, name="admin_active_users"),
    path("user-reading-lists", views.user_reading_lists, name="admin_user_reading_lists"),
    path("user-liked-books", views.user_liked_books, name="admin_user_liked_books"),
    path("reviews", views.all_reviews, name="admin_reviews"),
    path("stats", views.stats, name="admin_stats"),
]
