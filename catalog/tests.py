import json

from django.test import TestCase, Client
from django.contrib.auth.models import User

from catalog.models import Book, ReadingListEntry, LikedBook
from quiz.models import VerificationQuestion
from quiz.utils import create_question
from reviews.models import Review


options_list = ["Option A", "Option B", "Option C", "Option D"]

new_book_data = {
    "title": "The Hobbit",
    "author": "J. R. R. Tolkien",
    "description": "A hobbit goes on an adventure",
    "category": "Fantasy",
    "isbn": "9780261103344",
}


class CatalogTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username='testuser@gmail.com', email='testuser@gmail.com',
                                                 password='password', first_name='Test User')
        cls.random_user = User.objects.create_user(username='random@gmail.com', email='random@gmail.com',
                                                   password='random')
        cls.admin_user = User.objects.create_user(username='admin@gmail.com', email='admin@gmail.com',
                                                  password='admin123', is_staff=True)

        cls.book_one = Book.objects.create(title="Dune", author="Frank Herbert", category="Science Fiction",
                                           description="Spice and sand worms")
        cls.book_two = Book.objects.create(title="Emma", author="Jane Austen", category="Classic",
                                           description="A matchmaker in Highbury")

    def setUp(self):
        # Every test needs a client.
        self.authenticated_client = Client()
        self.authenticated_client.login(username='testuser@gmail.com', password='password')
        self.random_client = Client()
        self.random_client.login(username='random@gmail.com', password='random')
        self.admin_client = Client()
        self.admin_client.login(username='admin@gmail.com', password='admin123')
        self.unauthenticated_client = Client()

    def send_json(self, client, url, data, method='post'):
        return getattr(client, method)(url, data=json.dumps(data), content_type='application/json')

    def test_list_books(self):
        response = self.unauthenticated_client.get('/api/books')
        self.assertEqual(response.status_code, 200)
        titles = [b['title'] for b in json.loads(str(response.content, 'utf-8'))]
        self.assertEqual(titles, ["Dune", "Emma"])

    def test_list_books_by_category(self):
        response = self.unauthenticated_client.get('/api/books', {"category": "Classic"})
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual([b['title'] for b in content], ["Emma"])

    def test_search_books(self):
        response = self.unauthenticated_client.get('/api/books', {"search": "herbert"})
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual([b['title'] for b in content], ["Dune"])

        response = self.unauthenticated_client.get('/api/books', {"search": "highbury"})
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual([b['title'] for b in content], ["Emma"])

    def test_get_book_detail(self):
        pk = CatalogTestCase.book_one.pk
        response = self.unauthenticated_client.get(f'/api/books/{pk}')
        self.assertEqual(response.status_code, 200)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['title'], "Dune")
        self.assertEqual(content['average_rating'], 0)
        self.assertEqual(content['total_reviews'], 0)

    def test_get_book_not_found(self):
        response = self.unauthenticated_client.get('/api/books/9999')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'], "Not found")

    def test_admin_create_book(self):
        response = self.send_json(self.admin_client, '/api/books', new_book_data)

        self.assertEqual(response.status_code, 201)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['title'], "The Hobbit")
        self.assertEqual(content['average_rating'], 0)
        self.assertEqual(content['total_reviews'], 0)
        self.assertIsNone(content['publisher'])
        self.assertTrue(Book.objects.filter(title="The Hobbit").exists())

    def test_create_book_ignores_rating_fields(self):
        data = dict(new_book_data, average_rating=5, total_reviews=10)
        response = self.send_json(self.admin_client, '/api/books', data)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['average_rating'], 0)
        self.assertEqual(content['total_reviews'], 0)

    def test_create_book_validation_error(self):
        response = self.send_json(self.admin_client, '/api/books', {"title": "No author"})

        self.assertEqual(response.status_code, 400)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['error'], "Validation error")
        self.assertIn('author', content['errors'])
        self.assertIn('category', content['errors'])

    def test_non_admin_cannot_create_book(self):
        response = self.send_json(self.authenticated_client, '/api/books', new_book_data)
        self.assertEqual(response.status_code, 403)

        response = self.send_json(self.unauthenticated_client, '/api/books', new_book_data)
        self.assertEqual(response.status_code, 401)

        self.assertFalse(Book.objects.filter(title="The Hobbit").exists())

    def test_admin_partial_update_book(self):
        pk = CatalogTestCase.book_one.pk
        response = self.send_json(self.admin_client, f'/api/books/{pk}', {"publisher": "Chilton"}, method='put')

        self.assertEqual(response.status_code, 200)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['publisher'], "Chilton")
        self.assertEqual(content['title'], "Dune")

    def test_update_missing_book(self):
        response = self.send_json(self.admin_client, '/api/books/9999', {"publisher": "Chilton"}, method='put')
        self.assertEqual(response.status_code, 404)

    def test_admin_delete_book_cascades(self):
        book = Book.objects.create(**new_book_data)
        create_question(book, "Who is Bilbo?", options_list, 0)
        Review.objects.create(book=book, user=CatalogTestCase.test_user, rating=5, content="Great")
        ReadingListEntry.objects.create(book=book, user=CatalogTestCase.test_user)
        LikedBook.objects.create(book=book, user=CatalogTestCase.test_user)

        response = self.admin_client.delete(f'/api/books/{book.pk}')

        self.assertEqual(response.status_code, 200)
        self.assertFalse(Book.objects.filter(pk=book.pk).exists())
        self.assertFalse(VerificationQuestion.objects.filter(book_id=book.pk).exists())
        self.assertFalse(Review.objects.filter(book_id=book.pk).exists())
        self.assertFalse(ReadingListEntry.objects.filter(book_id=book.pk).exists())
        self.assertFalse(LikedBook.objects.filter(book_id=book.pk).exists())

    def test_non_admin_cannot_delete_book(self):
        pk = CatalogTestCase.book_one.pk
        response = self.authenticated_client.delete(f'/api/books/{pk}')
        self.assertEqual(response.status_code, 403)
        self.assertTrue(Book.objects.filter(pk=pk).exists())

    def test_reading_list_add_and_list(self):
        response = self.send_json(self.authenticated_client, '/api/reading-list',
                                  {"book_id": CatalogTestCase.book_one.pk})

        self.assertEqual(response.status_code, 201)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['progress'], 0)
        self.assertEqual(content['book']['title'], "Dune")

        response = self.authenticated_client.get('/api/reading-list')
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(len(content), 1)

        # Other users have their own list
        response = self.random_client.get('/api/reading-list')
        self.assertEqual(json.loads(str(response.content, 'utf-8')), [])

    def test_reading_list_duplicate(self):
        ReadingListEntry.objects.create(book=CatalogTestCase.book_one, user=CatalogTestCase.test_user)
        response = self.send_json(self.authenticated_client, '/api/reading-list',
                                  {"book_id": CatalogTestCase.book_one.pk})
        self.assertEqual(response.status_code, 400)

    def test_reading_list_missing_book(self):
        response = self.send_json(self.authenticated_client, '/api/reading-list', {"book_id": 9999})
        self.assertEqual(response.status_code, 404)

    def test_reading_list_unauthenticated(self):
        response = self.unauthenticated_client.get('/api/reading-list')
        self.assertEqual(response.status_code, 401)

    def test_update_reading_progress(self):
        entry = ReadingListEntry.objects.create(book=CatalogTestCase.book_one, user=CatalogTestCase.test_user)

        response = self.send_json(self.authenticated_client, f'/api/reading-list/{entry.pk}', {"progress": 55},
                                  method='put')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['progress'], 55)

        for bad in (-1, 101):
            response = self.send_json(self.authenticated_client, f'/api/reading-list/{entry.pk}',
                                      {"progress": bad}, method='put')
            self.assertEqual(response.status_code, 400)
            self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'],
                             "Progress must be a number between 0 and 100")

        entry.refresh_from_db()
        self.assertEqual(entry.progress, 55)

    def test_other_user_cannot_touch_reading_list_entry(self):
        entry = ReadingListEntry.objects.create(book=CatalogTestCase.book_one, user=CatalogTestCase.test_user)

        response = self.send_json(self.random_client, f'/api/reading-list/{entry.pk}', {"progress": 10},
                                  method='put')
        self.assertEqual(response.status_code, 404)

        response = self.random_client.delete(f'/api/reading-list/{entry.pk}')
        self.assertEqual(response.status_code, 404)
        self.assertTrue(ReadingListEntry.objects.filter(pk=entry.pk).exists())

    def test_remove_from_reading_list(self):
        entry = ReadingListEntry.objects.create(book=CatalogTestCase.book_one, user=CatalogTestCase.test_user)
        response = self.authenticated_client.delete(f'/api/reading-list/{entry.pk}')
        self.assertEqual(response.status_code, 200)
        self.assertFalse(ReadingListEntry.objects.filter(pk=entry.pk).exists())

    def test_like_and_unlike_book(self):
        response = self.send_json(self.authenticated_client, '/api/liked-books',
                                  {"book_id": CatalogTestCase.book_two.pk})
        self.assertEqual(response.status_code, 201)
        liked_pk = json.loads(str(response.content, 'utf-8'))['id']

        response = self.send_json(self.authenticated_client, '/api/liked-books',
                                  {"book_id": CatalogTestCase.book_two.pk})
        self.assertEqual(response.status_code, 400)

        response = self.authenticated_client.get('/api/liked-books')
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual([item['book']['title'] for item in content], ["Emma"])

        response = self.random_client.delete(f'/api/liked-books/{liked_pk}')
        self.assertEqual(response.status_code, 404)

        response = self.authenticated_client.delete(f'/api/liked-books/{liked_pk}')
        self.assertEqual(response.status_code, 200)
        self.assertFalse(LikedBook.objects.filter(pk=liked_pk).exists())
