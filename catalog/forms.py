from django.forms import ModelForm

from catalog.models import Book


class BookForm(ModelForm):

    class Meta:
        model = Book

        fields = ["title", "author", "publisher", "published_date", "description", "category", "isbn",
                  "cover_image"]
