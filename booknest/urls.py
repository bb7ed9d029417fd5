"""
URL configuration for the booknest project.

Every JSON endpoint lives under ``/api/``; each app contributes its own
``urlpatterns``.
"""
from django.contrib import admin
from django.urls import include, path

from booknest import views

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health', views.health, name='health'),
    path('api/auth/', include('accounts.urls')),
    path('api/', include('catalog.urls')),
    path('api/', include('quiz.urls')),
    path('api/', include('reviews.urls')),
    path('api/admin/', include('dashboard.urls')),
]

handler404 = 'booknest.views.not_found'
