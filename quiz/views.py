import logging

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods, require_POST
from pydantic import ValidationError as PydanticValidationError

from accounts.decorators import api_login_required, api_admin_required
from booknest.utils import parse_json_body, json_error, pydantic_errors, InvalidJSONBody
from catalog.models import Book
from quiz.exceptions import NoQuizConfigured, IncompleteAnswers
from quiz.schemas import QuestionIn, QuestionsReplace, VerifyAnswers
from quiz.utils import (get_questions, create_question, replace_all_questions, evaluate_answers,
                        serialize_question, questions_for_book)
from quiz.verification import VerificationState

logger = logging.getLogger("booknest")


@require_http_methods(["GET", "POST", "PUT", "DELETE"])
def book_questions(request, pk):
    if request.method == "POST":
        return add_question(request, pk)
    if request.method == "PUT":
        return replace_questions(request, pk)
    if request.method == "DELETE":
        return delete_questions(request, pk)

    book = get_object_or_404(Book, pk=pk)

    # Never includes the correct answer, admins included
    return JsonResponse(get_questions(book.pk), safe=False)


@api_admin_required
def add_question(request, pk):
    book = get_object_or_404(Book, pk=pk)

    try:
        payload = QuestionIn.model_validate(parse_json_body(request))
    except InvalidJSONBody as e:
        return json_error(str(e))
    except PydanticValidationError as e:
        logger.error(e)
        return json_error("Validation error", status=400, errors=pydantic_errors(e))

    try:
        new_question = create_question(book, payload.question, payload.options, payload.correct_option_index,
                                       question_number=payload.question_number)
    except ValidationError as e:
        logger.error(e)
        return json_error("Validation error", status=400, errors=e.messages)

    new_question = questions_for_book(book.pk).get(pk=new_question.pk)

    return JsonResponse(serialize_question(new_question, include_answer=True), status=201)


@api_admin_required
def replace_questions(request, pk):
    book = get_object_or_404(Book, pk=pk)

    try:
        payload = QuestionsReplace.model_validate(parse_json_body(request))
    except InvalidJSONBody as e:
        return json_error(str(e))
    except PydanticValidationError as e:
        logger.error(e)
        return json_error("Validation error", status=400, errors=pydantic_errors(e))

    try:
        replace_all_questions(book, [item.model_dump() for item in payload.questions])
    except ValidationError as e:
        logger.error(e)
        return json_error("Validation error", status=400, errors=e.messages)

    questions = [serialize_question(question, include_answer=True) for question in questions_for_book(book.pk)]

    return JsonResponse(questions, safe=False)


@api_admin_required
def delete_questions(request, pk):
    book = get_object_or_404(Book, pk=pk)

    replace_all_questions(book, [])

    return JsonResponse({"message": "All questions deleted for book"})


@require_POST
@api_login_required
def verify_answers(request, pk):
    book = get_object_or_404(Book, pk=pk)

    try:
        payload = VerifyAnswers.model_validate(parse_json_body(request))
    except InvalidJSONBody as e:
        return json_error(str(e))
    except PydanticValidationError as e:
        logger.error(e)
        return json_error("Validation error", status=400, errors=pydantic_errors(e))

    try:
        result = evaluate_answers(book.pk, payload.answers)
    except NoQuizConfigured as e:
        logger.error(e)
        return json_error("No verification questions found for this book", status=404)
    except IncompleteAnswers as e:
        logger.error(e)
        return json_error("Must answer all questions", status=400,
                          expected=e.expected, received=e.received)

    if result.passed:
        VerificationState.for_request(request).mark_verified(book.pk)
        logger.info(f"User {request.user.pk} verified for book {book.pk}")

    return JsonResponse({"verified": result.passed, "message": result.reason})
