from django.urls import path

from quiz import views

urlpatterns = [
    path('books/<int:pk>/questions', views.book_questions, name='book_questions'),
    path('books/<int:pk>/verify', views.verify_answers, name='verify_answers'),
]
