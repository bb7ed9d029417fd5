import json

from django.core.exceptions import ValidationError
from django.contrib.sessions.backends.db import SessionStore
from django.test import TestCase, Client
from django.contrib.auth.models import User
from django.forms.models import inlineformset_factory

from catalog.models import Book
from quiz.admin import AnswerInline, AnswerInlineFormSet
from quiz.exceptions import NoQuizConfigured, IncompleteAnswers
from quiz.models import VerificationQuestion, Answer
from quiz.utils import (get_questions, get_questions_with_answers, create_question, replace_all_questions,
                        evaluate_answers)
from quiz.verification import VerificationState


options_list = ["Option A", "Option B", "Option C", "Option D"]


def make_book(title="Test Book"):
    return Book.objects.create(title=title, author="Test Author", description="A test description",
                               category="Fiction")


class QuizStoreTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_book = make_book()
        cls.empty_book = make_book(title="No Quiz Book")

        # Correct options are [1, 0, 2]
        for number, correct in enumerate([1, 0, 2], start=1):
            q = create_question(cls.test_book, f"test_question_{number}", options_list, correct,
                                question_number=number)
            setattr(cls, f'question_{number}', q)

    def test_get_questions_strips_correct_answer(self):
        questions = get_questions(QuizStoreTestCase.test_book.pk)

        self.assertEqual(len(questions), 3)

        for index, question in enumerate(questions):
            self.assertNotIn("correct_option_index", question)
            self.assertEqual(question["question"], f"test_question_{index + 1}")
            self.assertEqual(question["options"], options_list)
            self.assertEqual(question["book_id"], QuizStoreTestCase.test_book.pk)

    def test_get_questions_empty_for_book_without_quiz(self):
        self.assertEqual(get_questions(QuizStoreTestCase.empty_book.pk), [])

    def test_get_questions_with_answers_keeps_order_and_answers(self):
        questions = get_questions_with_answers(QuizStoreTestCase.test_book.pk)
        self.assertEqual([q.correct_option_index for q in questions], [1, 0, 2])
        self.assertEqual([q.question_number for q in questions], [1, 2, 3])

    def test_create_question_stores_one_correct_answer(self):
        answers = Answer.objects.filter(question=QuizStoreTestCase.question_1).order_by('answer_number')

        self.assertEqual(answers.count(), 4)

        for index, answer in enumerate(answers):
            self.assertEqual(answer.answer_number, index + 1)
            self.assertEqual(answer.answer_text, options_list[index])
            self.assertEqual(answer.correct, index == 1)

    def test_create_question_default_question_number_appends(self):
        new_question = create_question(QuizStoreTestCase.test_book, "fourth", options_list, 3)
        self.assertEqual(new_question.question_number, 4)

    def test_create_question_rejects_out_of_range_correct_index(self):
        with self.assertRaises(ValidationError):
            create_question(QuizStoreTestCase.test_book, "bad", options_list, 4)

        with self.assertRaises(ValidationError):
            create_question(QuizStoreTestCase.test_book, "bad", options_list, -1)

        self.assertEqual(VerificationQuestion.objects.filter(book=QuizStoreTestCase.test_book).count(), 3)

    def test_create_question_rejects_wrong_number_of_options(self):
        with self.assertRaises(ValidationError):
            create_question(QuizStoreTestCase.test_book, "bad", ["only", "three", "options"], 0)

    def test_replace_all_questions_discards_old_questions(self):
        old_pks = list(VerificationQuestion.objects.filter(book=QuizStoreTestCase.test_book)
                       .values_list('pk', flat=True))

        new_questions = [
            {"question": "replacement_1", "options": options_list, "correct_option_index": 3},
            {"question": "replacement_2", "options": options_list, "correct_option_index": 2},
        ]

        replace_all_questions(QuizStoreTestCase.test_book, new_questions)

        questions = get_questions_with_answers(QuizStoreTestCase.test_book.pk)
        self.assertEqual([q.question_text for q in questions], ["replacement_1", "replacement_2"])
        self.assertEqual([q.correct_option_index for q in questions], [3, 2])
        self.assertFalse(VerificationQuestion.objects.filter(pk__in=old_pks).exists())
        self.assertFalse(Answer.objects.filter(question_id__in=old_pks).exists())

    def test_replace_all_questions_with_empty_list_deletes_everything(self):
        replace_all_questions(QuizStoreTestCase.test_book, [])
        self.assertEqual(get_questions(QuizStoreTestCase.test_book.pk), [])

    def test_replace_all_questions_invalid_batch_keeps_old_questions(self):
        new_questions = [
            {"question": "replacement_1", "options": options_list, "correct_option_index": 0},
            {"question": "replacement_2", "options": options_list, "correct_option_index": 9},
        ]

        with self.assertRaises(ValidationError):
            replace_all_questions(QuizStoreTestCase.test_book, new_questions)

        self.assertEqual(len(get_questions(QuizStoreTestCase.test_book.pk)), 3)

    def test_questions_deleted_with_book(self):
        book = make_book(title="Short lived")
        create_question(book, "q", options_list, 0)
        book_pk = book.pk
        book.delete()
        self.assertFalse(VerificationQuestion.objects.filter(book_id=book_pk).exists())


class EvaluateAnswersTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_book = make_book()
        cls.empty_book = make_book(title="No Quiz Book")

        for number, correct in enumerate([1, 0, 2], start=1):
            create_question(cls.test_book, f"test_question_{number}", options_list, correct,
                            question_number=number)

    def test_all_correct_answers_pass(self):
        result = evaluate_answers(EvaluateAnswersTestCase.test_book.pk, [1, 0, 2])
        self.assertTrue(result.passed)

    def test_single_wrong_answer_fails(self):
        result = evaluate_answers(EvaluateAnswersTestCase.test_book.pk, [1, 0, 1])
        self.assertFalse(result.passed)
        self.assertEqual(result.reason, "One or more answers are incorrect")

    def test_changing_any_one_answer_flips_result(self):
        correct = [1, 0, 2]

        for position in range(len(correct)):
            for wrong_value in range(4):
                if wrong_value == correct[position]:
                    continue
                answers = list(correct)
                answers[position] = wrong_value
                self.assertFalse(evaluate_answers(EvaluateAnswersTestCase.test_book.pk, answers).passed)

    def test_answers_are_positional(self):
        # Same values in a different order do not pass
        self.assertFalse(evaluate_answers(EvaluateAnswersTestCase.test_book.pk, [0, 1, 2]).passed)
        self.assertFalse(evaluate_answers(EvaluateAnswersTestCase.test_book.pk, [2, 0, 1]).passed)

    def test_too_few_answers_raises_incomplete(self):
        with self.assertRaises(IncompleteAnswers) as ctx:
            evaluate_answers(EvaluateAnswersTestCase.test_book.pk, [1, 0])

        self.assertEqual(ctx.exception.expected, 3)
        self.assertEqual(ctx.exception.received, 2)

    def test_too_many_answers_raises_incomplete(self):
        with self.assertRaises(IncompleteAnswers):
            evaluate_answers(EvaluateAnswersTestCase.test_book.pk, [1, 0, 2, 3])

    def test_no_quiz_configured(self):
        with self.assertRaises(NoQuizConfigured):
            evaluate_answers(EvaluateAnswersTestCase.empty_book.pk, [])


class VerificationStateTestCase(TestCase):

    def setUp(self):
        self.session = SessionStore()

    def test_not_verified_by_default(self):
        state = VerificationState(self.session)
        self.assertFalse(state.is_verified(1))
        self.assertEqual(state.verified_books(), set())

    def test_mark_verified(self):
        state = VerificationState(self.session)
        state.mark_verified(1)
        self.assertTrue(state.is_verified(1))
        self.assertFalse(state.is_verified(2))

    def test_verification_is_monotonic(self):
        state = VerificationState(self.session)
        state.mark_verified(5)
        state.mark_verified(5)
        state.mark_verified(6)

        for _ in range(3):
            self.assertTrue(state.is_verified(5))

        self.assertEqual(self.session[VerificationState.SESSION_KEY], [5, 6])

    def test_state_survives_session_save_and_reload(self):
        state = VerificationState(self.session)
        state.mark_verified(3)
        self.session.save()

        reloaded = VerificationState(SessionStore(session_key=self.session.session_key))
        self.assertTrue(reloaded.is_verified(3))

    def test_separate_sessions_do_not_share_state(self):
        VerificationState(self.session).mark_verified(3)
        self.assertFalse(VerificationState(SessionStore()).is_verified(3))


class AnswerInlineFormSetTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_book = make_book()
        cls.test_question = create_question(cls.test_book, "test_question_1", options_list, 1)

    def make_formset(self, correct=(1,), delete=()):
        AnswerFormSet = inlineformset_factory(VerificationQuestion, Answer, formset=AnswerInlineFormSet,
                                              fields=('answer_text', 'correct', 'answer_number'), extra=0)
        question = AnswerInlineFormSetTestCase.test_question
        answers = list(question.answers.all())

        data = {
            'answers-TOTAL_FORMS': str(len(answers)),
            'answers-INITIAL_FORMS': str(len(answers)),
            'answers-MIN_NUM_FORMS': '0',
            'answers-MAX_NUM_FORMS': '1000',
        }

        for index, answer in enumerate(answers):
            data[f'answers-{index}-id'] = str(answer.pk)
            data[f'answers-{index}-question'] = str(question.pk)
            data[f'answers-{index}-answer_text'] = answer.answer_text
            data[f'answers-{index}-answer_number'] = str(answer.answer_number)
            if index in correct:
                data[f'answers-{index}-correct'] = 'on'
            if index in delete:
                data[f'answers-{index}-DELETE'] = 'on'

        return AnswerFormSet(data, instance=question)

    def test_admin_inline_uses_formset(self):
        self.assertIs(AnswerInline.formset, AnswerInlineFormSet)

    def test_one_correct_answer_is_valid(self):
        formset = self.make_formset(correct=(2,))
        self.assertTrue(formset.is_valid())

    def test_no_correct_answer_is_rejected(self):
        formset = self.make_formset(correct=())
        self.assertFalse(formset.is_valid())
        self.assertIn("Exactly one answer must be marked correct, got 0", formset.non_form_errors())

    def test_two_correct_answers_are_rejected(self):
        formset = self.make_formset(correct=(0, 3))
        self.assertFalse(formset.is_valid())

    def test_deleting_an_answer_is_rejected(self):
        formset = self.make_formset(correct=(1,), delete=(3,))
        self.assertFalse(formset.is_valid())
        self.assertIn("A question needs exactly 4 answers, got 3", formset.non_form_errors())

    def test_rejected_formset_leaves_quiz_passable(self):
        formset = self.make_formset(correct=())
        self.assertFalse(formset.is_valid())

        question = VerificationQuestion.objects.get(pk=AnswerInlineFormSetTestCase.test_question.pk)
        self.assertEqual(question.correct_option_index, 1)


class QuizViewsTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username='testuser@gmail.com', email='testuser@gmail.com',
                                                 password='password', first_name='Test User')
        cls.admin_user = User.objects.create_user(username='admin@gmail.com', email='admin@gmail.com',
                                                  password='admin123', is_staff=True)

        cls.test_book = make_book()
        cls.empty_book = make_book(title="No Quiz Book")

        for number, correct in enumerate([1, 0, 2], start=1):
            create_question(cls.test_book, f"test_question_{number}", options_list, correct,
                            question_number=number)

    def setUp(self):
        # Every test needs a client.
        self.authenticated_client = Client()
        self.authenticated_client.login(username='testuser@gmail.com', password='password')
        self.admin_client = Client()
        self.admin_client.login(username='admin@gmail.com', password='admin123')
        self.unauthenticated_client = Client()

    def post_json(self, client, url, data, method='post'):
        return getattr(client, method)(url, data=json.dumps(data), content_type='application/json')

    def test_get_questions_public_without_answers(self):
        pk = QuizViewsTestCase.test_book.pk
        for client in (self.unauthenticated_client, self.authenticated_client, self.admin_client):
            response = client.get(f'/api/books/{pk}/questions')
            self.assertEqual(response.status_code, 200)
            content = json.loads(str(response.content, 'utf-8'))
            self.assertEqual(len(content), 3)
            for question in content:
                self.assertNotIn("correct_option_index", question)
                self.assertEqual(question["options"], options_list)

    def test_get_questions_book_not_found(self):
        response = self.unauthenticated_client.get('/api/books/9999/questions')
        self.assertEqual(response.status_code, 404)

    def test_admin_create_question(self):
        pk = QuizViewsTestCase.empty_book.pk
        response = self.post_json(self.admin_client, f'/api/books/{pk}/questions',
                                  {"question": "Who wrote it?", "options": options_list,
                                   "correct_option_index": 2})

        self.assertEqual(response.status_code, 201)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content["question"], "Who wrote it?")
        self.assertEqual(content["correct_option_index"], 2)
        self.assertEqual(VerificationQuestion.objects.filter(book=QuizViewsTestCase.empty_book).count(), 1)

    def test_admin_create_question_invalid_index(self):
        pk = QuizViewsTestCase.empty_book.pk
        response = self.post_json(self.admin_client, f'/api/books/{pk}/questions',
                                  {"question": "Who wrote it?", "options": options_list,
                                   "correct_option_index": 7})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'], "Validation error")

    def test_admin_create_question_missing_fields(self):
        pk = QuizViewsTestCase.empty_book.pk
        response = self.post_json(self.admin_client, f'/api/books/{pk}/questions', {"question": "Who?"})
        self.assertEqual(response.status_code, 400)

    def test_admin_create_question_book_not_found(self):
        response = self.post_json(self.admin_client, '/api/books/9999/questions',
                                  {"question": "Who wrote it?", "options": options_list,
                                   "correct_option_index": 2})
        self.assertEqual(response.status_code, 404)

    def test_non_admin_cannot_create_question(self):
        pk = QuizViewsTestCase.empty_book.pk
        data = {"question": "Who wrote it?", "options": options_list, "correct_option_index": 2}

        response = self.post_json(self.authenticated_client, f'/api/books/{pk}/questions', data)
        self.assertEqual(response.status_code, 403)

        response = self.post_json(self.unauthenticated_client, f'/api/books/{pk}/questions', data)
        self.assertEqual(response.status_code, 401)

        self.assertFalse(VerificationQuestion.objects.filter(book=QuizViewsTestCase.empty_book).exists())

    def test_admin_replace_questions(self):
        pk = QuizViewsTestCase.test_book.pk
        data = {"questions": [
            {"question": "new_1", "options": options_list, "correct_option_index": 0},
            {"question": "new_2", "options": options_list, "correct_option_index": 1},
            {"question": "new_3", "options": options_list, "correct_option_index": 3},
        ]}

        response = self.post_json(self.admin_client, f'/api/books/{pk}/questions', data, method='put')

        self.assertEqual(response.status_code, 200)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual([q["question"] for q in content], ["new_1", "new_2", "new_3"])
        self.assertEqual([q["correct_option_index"] for q in content], [0, 1, 3])
        self.assertEqual(VerificationQuestion.objects.filter(book=QuizViewsTestCase.test_book).count(), 3)

    def test_admin_delete_all_questions(self):
        pk = QuizViewsTestCase.test_book.pk
        response = self.admin_client.delete(f'/api/books/{pk}/questions')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['message'], "All questions deleted for book")
        self.assertFalse(VerificationQuestion.objects.filter(book=QuizViewsTestCase.test_book).exists())

    def test_non_admin_cannot_delete_questions(self):
        pk = QuizViewsTestCase.test_book.pk
        response = self.authenticated_client.delete(f'/api/books/{pk}/questions')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(VerificationQuestion.objects.filter(book=QuizViewsTestCase.test_book).count(), 3)

    def test_verify_correct_answers_marks_session(self):
        pk = QuizViewsTestCase.test_book.pk
        response = self.post_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": [1, 0, 2]})

        self.assertEqual(response.status_code, 200)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertTrue(content['verified'])
        self.assertEqual(content['message'], "Answers verified successfully")
        self.assertIn(pk, self.authenticated_client.session[VerificationState.SESSION_KEY])

    def test_verify_wrong_answers(self):
        pk = QuizViewsTestCase.test_book.pk
        response = self.post_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": [1, 0, 1]})

        self.assertEqual(response.status_code, 200)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertFalse(content['verified'])
        self.assertEqual(content['message'], "One or more answers are incorrect")
        self.assertNotIn(VerificationState.SESSION_KEY, self.authenticated_client.session)

    def test_failed_attempt_after_pass_keeps_verification(self):
        pk = QuizViewsTestCase.test_book.pk
        self.post_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": [1, 0, 2]})
        response = self.post_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": [3, 3, 3]})

        self.assertFalse(json.loads(str(response.content, 'utf-8'))['verified'])
        self.assertIn(pk, self.authenticated_client.session[VerificationState.SESSION_KEY])

    def test_verify_incomplete_answers(self):
        pk = QuizViewsTestCase.test_book.pk
        response = self.post_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": [1, 0]})

        self.assertEqual(response.status_code, 400)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['error'], "Must answer all questions")
        self.assertEqual(content['expected'], 3)
        self.assertEqual(content['received'], 2)

    def test_verify_malformed_answers(self):
        pk = QuizViewsTestCase.test_book.pk
        response = self.post_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": ["a", 0, 2]})
        self.assertEqual(response.status_code, 400)

        response = self.authenticated_client.post(f'/api/books/{pk}/verify', data="not json",
                                                  content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'], "Invalid JSON")

    def test_verify_no_quiz_configured(self):
        pk = QuizViewsTestCase.empty_book.pk
        response = self.post_json(self.authenticated_client, f'/api/books/{pk}/verify', {"answers": []})
        self.assertEqual(response.status_code, 404)

    def test_verify_unauthenticated(self):
        pk = QuizViewsTestCase.test_book.pk
        response = self.post_json(self.unauthenticated_client, f'/api/books/{pk}/verify', {"answers": [1, 0, 2]})
        self.assertEqual(response.status_code, 401)

    def test_verify_get_not_allowed(self):
        pk = QuizViewsTestCase.test_book.pk
        response = self.authenticated_client.get(f'/api/books/{pk}/verify')
        self.assertEqual(response.status_code, 405)
