from django.db import models

from catalog.models import Book

class VerificationQuestion(models.Model):
    question_text = models.TextField()
    book = models.ForeignKey(Book, on_delete=models.CASCADE, related_name='questions')
    question_number = models.IntegerField(default=0)

    class Meta:
        ordering = ['question_number', 'pk']

    def __str__(self):
        return self.question_text

    @property
    def correct_option_index(self):
        """Zero based position of the correct answer among the ordered answers."""
        for index, answer in enumerate(self.answers.all()):
            if answer.correct:
                return index
        return None


class Answer(models.Model):
    answer_text = models.TextField()
    question = models.ForeignKey(VerificationQuestion, on_delete=models.CASCADE, related_name='answers')
    correct = models.BooleanField(default=False)
    answer_number = models.IntegerField(default=0)

    class Meta:
        ordering = ['answer_number', 'pk']
