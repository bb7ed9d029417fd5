"""
Verification quiz storage and answer checking.

Each book carries a small ordered set of multiple choice questions. Readers
only ever see the questions and their options; the correct answers are used
server side by :func:`evaluate_answers`.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Max

from quiz.exceptions import NoQuizConfigured, IncompleteAnswers
from quiz.models import VerificationQuestion, Answer


logger = logging.getLogger("booknest")


@dataclass(frozen=True)
class VerificationResult:
    passed: bool
    reason: str


def questions_for_book(book_id):
    return VerificationQuestion.objects.filter(book_id=book_id).prefetch_related('answers')


def serialize_question(question, include_answer=False):
    data = {
        "id": question.pk,
        "book_id": question.book_id,
        "question": question.question_text,
        "options": [answer.answer_text for answer in question.answers.all()],
        "question_number": question.question_number,
    }

    if include_answer:
        data["correct_option_index"] = question.correct_option_index

    return data


def get_questions(book_id) -> List[dict]:
    """
    Questions for a book with the correct answer stripped, safe for any caller.
    """
    return [serialize_question(question) for question in questions_for_book(book_id)]


def get_questions_with_answers(book_id) -> List[VerificationQuestion]:
    return list(questions_for_book(book_id))


def validate_question(question_text: str, options: List[str], correct_option_index: int):
    option_count = settings.BOOKNEST_QUESTION_OPTION_COUNT

    if not question_text or not question_text.strip():
        raise ValidationError("Question text is required")

    if len(options) != option_count:
        raise ValidationError(f"A question needs exactly {option_count} options, got {len(options)}")

    if any(not option or not option.strip() for option in options):
        raise ValidationError("Options cannot be blank")

    if not 0 <= correct_option_index < len(options):
        raise ValidationError(f"correct_option_index must be between 0 and {len(options) - 1}")


def create_question(book, question_text: str, options: List[str], correct_option_index: int,
                    question_number: Optional[int] = None) -> VerificationQuestion:

    validate_question(question_text, options, correct_option_index)

    if question_number is None:
        highest = VerificationQuestion.objects.filter(book=book).aggregate(highest=Max('question_number'))['highest']
        question_number = (highest or 0) + 1

    with transaction.atomic():
        new_question = VerificationQuestion.objects.create(
            book=book, question_text=question_text, question_number=question_number)

        Answer.objects.bulk_create([
            Answer(question=new_question, answer_text=option, answer_number=index + 1,
                   correct=index == correct_option_index)
            for index, option in enumerate(options)
        ])

    logger.debug(f"Question {new_question.pk} created for book {book.pk}")

    return new_question


def replace_all_questions(book, questions) -> List[VerificationQuestion]:
    """
    Delete every question of ``book`` then create ``questions`` in the given order.

    ``questions`` is a sequence of dicts with ``question``, ``options`` and
    ``correct_option_index``. The whole batch is validated before anything is
    deleted; the old questions are not recoverable afterwards.
    """
    for item in questions:
        validate_question(item["question"], item["options"], item["correct_option_index"])

    with transaction.atomic():
        deleted, _ = VerificationQuestion.objects.filter(book=book).delete()
        logger.info(f"Deleted {deleted} question rows for book {book.pk}")

        created = [
            create_question(book, item["question"], item["options"], item["correct_option_index"],
                            question_number=number)
            for number, item in enumerate(questions, start=1)
        ]

    return created


def evaluate_answers(book_id, answers: List[int]) -> VerificationResult:
    """
    All or nothing check of ``answers`` against the stored correct options.

    ``answers[i]`` is the chosen option index for the i-th question in the
    order :func:`get_questions` returns them. Raises :class:`NoQuizConfigured`
    when the book has no questions and :class:`IncompleteAnswers` when the
    answer count is off; a complete but wrong submission is a normal result.
    Recording the outcome in the session is left to the caller.
    """
    questions = get_questions_with_answers(book_id)

    if not questions:
        raise NoQuizConfigured(f"No verification questions found for book {book_id}")

    if len(answers) != len(questions):
        raise IncompleteAnswers(expected=len(questions), received=len(answers))

    passed = all(answer == question.correct_option_index for answer, question in zip(answers, questions))

    if passed:
        return VerificationResult(passed=True, reason="Answers verified successfully")

    return VerificationResult(passed=False, reason="One or more answers are incorrect")
