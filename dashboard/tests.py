import json

from django.test import TestCase, Client
from django.contrib.auth.models import User

from catalog.models import Book, ReadingListEntry, LikedBook
from reviews.models import Review


admin_urls = [
    '/api/admin/users',
    '/api/admin/active-users',
    '/api/admin/user-reading-lists',
    '/api/admin/user-liked-books',
    '/api/admin/reviews',
    '/api/admin/stats',
]


class DashboardTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin_user = User.objects.create_user(username='admin@gmail.com', email='admin@gmail.com',
                                                  password='admin123', first_name='Admin User', is_staff=True)
        cls.test_user = User.objects.create_user(username='testuser@gmail.com', email='testuser@gmail.com',
                                                 password='password', first_name='Test User')
        cls.inactive_user = User.objects.create_user(username='inactive@gmail.com', email='inactive@gmail.com',
                                                     password='password2', is_active=False)

        cls.book_one = Book.objects.create(title="Dune", author="Frank Herbert", category="Science Fiction",
                                           description="Spice and sand worms")
        cls.book_two = Book.objects.create(title="Emma", author="Jane Austen", category="Classic",
                                           description="A matchmaker in Highbury")

        ReadingListEntry.objects.create(user=cls.test_user, book=cls.book_one, progress=40)
        LikedBook.objects.create(user=cls.test_user, book=cls.book_two)

        cls.first_review = Review.objects.create(user=cls.test_user, book=cls.book_one, rating=4,
                                                 content="Long but worth it")
        cls.second_review = Review.objects.create(user=cls.test_user, book=cls.book_two, rating=2,
                                                  content="Not for me")

    def setUp(self):
        self.admin_client = Client()
        self.admin_client.login(username='admin@gmail.com', password='admin123')
        self.authenticated_client = Client()
        self.authenticated_client.login(username='testuser@gmail.com', password='password')
        self.unauthenticated_client = Client()

    def get_content(self, url):
        response = self.admin_client.get(url)
        self.assertEqual(response.status_code, 200)
        return json.loads(str(response.content, 'utf-8'))

    def test_admin_only(self):
        for url in admin_urls:
            with self.subTest(url=url):
                response = self.unauthenticated_client.get(url)
                self.assertEqual(response.status_code, 401)

                response = self.authenticated_client.get(url)
                self.assertEqual(response.status_code, 403)
                self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'], "Admin access required")

    def test_post_not_allowed(self):
        response = self.admin_client.post('/api/admin/users')
        self.assertEqual(response.status_code, 405)

    def test_users(self):
        content = self.get_content('/api/admin/users')
        self.assertEqual([u['email'] for u in content],
                         ['admin@gmail.com', 'testuser@gmail.com', 'inactive@gmail.com'])
        self.assertTrue(content[0]['is_admin'])
        self.assertFalse(content[2]['is_active'])

    def test_active_users(self):
        content = self.get_content('/api/admin/active-users')
        self.assertEqual([u['email'] for u in content], ['admin@gmail.com', 'testuser@gmail.com'])

    def test_user_reading_lists(self):
        content = self.get_content('/api/admin/user-reading-lists')
        by_user = {item['user_id']: item for item in content}

        test_user_list = by_user[DashboardTestCase.test_user.pk]
        self.assertEqual(test_user_list['user_name'], "Test User")
        self.assertEqual(len(test_user_list['reading_list']), 1)
        self.assertEqual(test_user_list['reading_list'][0]['progress'], 40)
        self.assertEqual(test_user_list['reading_list'][0]['book']['title'], "Dune")

        self.assertEqual(by_user[DashboardTestCase.admin_user.pk]['reading_list'], [])

    def test_user_liked_books(self):
        content = self.get_content('/api/admin/user-liked-books')
        by_user = {item['user_id']: item for item in content}

        liked = by_user[DashboardTestCase.test_user.pk]['liked_books']
        self.assertEqual([item['book']['title'] for item in liked], ["Emma"])

    def test_all_reviews_newest_first(self):
        content = self.get_content('/api/admin/reviews')

        self.assertEqual([r['id'] for r in content],
                         [DashboardTestCase.second_review.pk, DashboardTestCase.first_review.pk])
        self.assertEqual(content[0]['book']['title'], "Emma")
        self.assertEqual(content[0]['user']['name'], "Test User")

    def test_stats(self):
        content = self.get_content('/api/admin/stats')
        self.assertEqual(content, {
            "total_users": 3,
            "active_users": 2,
            "total_books": 2,
            "total_reviews": 2,
        })
