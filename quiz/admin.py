from django.conf import settings
from django.contrib import admin
from django.core.exceptions import ValidationError
from django.forms.models import BaseInlineFormSet

from quiz.models import VerificationQuestion, Answer


class AnswerInlineFormSet(BaseInlineFormSet):
    """
    A question keeps exactly ``BOOKNEST_QUESTION_OPTION_COUNT`` answers with a single correct one.
    """

    def clean(self):
        super().clean()

        if any(self.errors):
            return

        answers = [form.cleaned_data for form in self.forms
                   if form.cleaned_data and not form.cleaned_data.get("DELETE")]

        option_count = settings.BOOKNEST_QUESTION_OPTION_COUNT

        if len(answers) != option_count:
            raise ValidationError(f"A question needs exactly {option_count} answers, got {len(answers)}")

        correct_count = sum(1 for answer in answers if answer.get("correct"))

        if correct_count != 1:
            raise ValidationError(f"Exactly one answer must be marked correct, got {correct_count}")


class AnswerInline(admin.TabularInline):
    model = Answer
    formset = AnswerInlineFormSet
    extra = 0
    max_num = settings.BOOKNEST_QUESTION_OPTION_COUNT


class VerificationQuestionAdmin(admin.ModelAdmin):
    list_display = ('question_text', 'book', 'question_number')
    list_filter = ('book',)
    search_fields = ('question_text', 'book__title')
    inlines = [AnswerInline]

admin.site.register(VerificationQuestion, VerificationQuestionAdmin)
