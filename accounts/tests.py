import json
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import TestCase, Client

from django.contrib.auth import get_user_model
from accounts.backends import EmailBackend
from accounts.utils import user_summary

BackendUser = get_user_model()

class AccountsTestCase(TestCase):


    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username='testuser@gmail.com', password='password',
                                                 email='testuser@gmail.com', first_name='Test User')
        cls.inactive_user = User.objects.create_user(username='inactive_user@gmail.com', password='password2',
                                                     email="inactive_user@gmail.com")
        cls.inactive_user.is_active = False
        cls.inactive_user.save()

    def setUp(self):
        # Every test needs a client.
        self.authenticated_client = Client()
        self.authenticated_client.login(username='testuser@gmail.com', password='password')
        self.unauthenticated_client = Client()

    def post_json(self, client, url, data):
        return client.post(url, data=json.dumps(data), content_type='application/json')

    def test_login_email_password(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/login', {
            "email": "testuser@gmail.com",
            "password": "password"
        })

        self.assertEqual(response.status_code, 200)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['email'], "testuser@gmail.com")
        self.assertEqual(content['name'], "Test User")
        self.assertFalse(content['is_admin'])
        self.assertNotIn('password', content)

        # verify that user is authenticated
        self.assertTrue("_auth_user_id" in self.unauthenticated_client.session)

    def test_login_email_is_case_insensitive(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/login', {
            "email": "TestUser@Gmail.com",
            "password": "password"
        })
        self.assertEqual(response.status_code, 200)

    def test_login_wrong_password(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/login', {
            "email": "testuser@gmail.com",
            "password": "passworddd"
        })
        self.assertEqual(response.status_code, 401)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'], "Invalid email or password")
        # verify that user is not authenticated
        self.assertFalse("_auth_user_id" in self.unauthenticated_client.session)

    def test_login_unknown_email(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/login', {
            "email": "nobody@gmail.com",
            "password": "password"
        })
        self.assertEqual(response.status_code, 401)

    def test_login_inactive_user(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/login', {
            "email": "inactive_user@gmail.com",
            "password": "password2"
        })
        self.assertEqual(response.status_code, 401)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertIn("Your account is inactive. Please contact support.", content['errors']['__all__'])
        self.assertFalse("_auth_user_id" in self.unauthenticated_client.session)

    def test_login_invalid_json(self):
        response = self.unauthenticated_client.post('/api/auth/login', data="{not json",
                                                    content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_login_get_not_allowed(self):
        response = self.unauthenticated_client.get('/api/auth/login')
        self.assertEqual(response.status_code, 405)

    def test_register_success(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/register', {
            "name": "New User",
            "email": "newuser@example.com",
            "password": "strongpassword123",
            "confirm_password": "strongpassword123"
        })

        self.assertEqual(response.status_code, 201)

        # Confirm user was created in DB
        user = User.objects.get(email="newuser@example.com")
        self.assertEqual(user.username, "newuser@example.com")
        self.assertEqual(user.first_name, "New User")
        self.assertTrue(user.is_active)
        self.assertFalse(user.is_staff)
        self.assertTrue(user.check_password("strongpassword123"))

        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['id'], user.pk)
        self.assertEqual(content['name'], "New User")

        # registering logs the user in
        self.assertEqual(int(self.unauthenticated_client.session["_auth_user_id"]), user.pk)

    def test_register_password_mismatch(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/register', {
            "name": "User Two",
            "email": "user2@example.com",
            "password": "password123",
            "confirm_password": "different123"
        })
        self.assertEqual(response.status_code, 400)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertIn('password2', content['errors'])
        self.assertFalse(User.objects.filter(email="user2@example.com").exists())

    def test_register_short_password(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/register', {
            "name": "User Two",
            "email": "user2@example.com",
            "password": "abc",
            "confirm_password": "abc"
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(User.objects.filter(email="user2@example.com").exists())

    def test_register_duplicate_email(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/register', {
            "name": "Someone",
            "email": "TESTUSER@gmail.com",
            "password": "somepass123dgdgdgdg",
            "confirm_password": "somepass123dgdgdgdg"
        })
        self.assertEqual(response.status_code, 400)
        content = json.loads(str(response.content, 'utf-8'))
        self.assertEqual(content['errors']['email'], ["Email already registered"])

    def test_register_missing_name(self):
        response = self.post_json(self.unauthenticated_client, '/api/auth/register', {
            "email": "noname@example.com",
            "password": "somepass123",
            "confirm_password": "somepass123"
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('name', json.loads(str(response.content, 'utf-8'))['errors'])

    def test_me_authenticated(self):
        response = self.authenticated_client.get('/api/auth/me')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['id'], AccountsTestCase.test_user.pk)

    def test_me_unauthenticated(self):
        response = self.unauthenticated_client.get('/api/auth/me')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'], "Authentication required")

    def test_logout(self):
        response = self.authenticated_client.post('/api/auth/logout')
        self.assertEqual(response.status_code, 200)
        self.assertFalse("_auth_user_id" in self.authenticated_client.session)

        response = self.authenticated_client.get('/api/auth/me')
        self.assertEqual(response.status_code, 401)

    def test_csrf_token(self):
        response = self.unauthenticated_client.get('/api/auth/csrf')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(json.loads(str(response.content, 'utf-8'))['csrf_token'])
        self.assertIn('csrftoken', response.cookies)

    def test_user_summary(self):
        self.assertEqual(user_summary(AccountsTestCase.test_user),
                         {"id": AccountsTestCase.test_user.pk, "name": "Test User"})
        # falls back to the username without a display name
        self.assertEqual(user_summary(AccountsTestCase.inactive_user)["name"], "inactive_user@gmail.com")


class EmailBackendTest(TestCase):
    def setUp(self):
        self.backend = EmailBackend()
        self.backend_user = BackendUser.objects.create_user(
            username="testuser",
            email="test@example.com",
            password="securepass123"
        )

        self.inactive_user = BackendUser.objects.create_user(username="testuser2", email="test_yser_2@example.com",
                                                             password="kkkksskss")
        self.inactive_user.is_active = False
        self.inactive_user.save()

    def test_authenticate_with_username_success(self):
        authenticated_user = self.backend.authenticate(
            request=None, username="testuser", password="securepass123"
        )
        self.assertEqual(authenticated_user, self.backend_user)

    def test_authenticate_with_email_success(self):
        authenticated_user = self.backend.authenticate(
            request=None, username="test@example.com", password="securepass123"
        )
        self.assertEqual(authenticated_user, self.backend_user)

    def test_authenticate_with_email_keyword(self):
        authenticated_user = self.backend.authenticate(
            request=None, email="test@example.com", password="securepass123"
        )
        self.assertEqual(authenticated_user, self.backend_user)

    def test_authenticate_with_wrong_password(self):
        authenticated_user = self.backend.authenticate(
            request=None, username="testuser", password="wrongpassword"
        )
        self.assertIsNone(authenticated_user)

    def test_authenticate_with_invalid_username_or_email(self):
        authenticated_user = self.backend.authenticate(
            request=None, username="doesnotexist", password="whatever"
        )
        self.assertIsNone(authenticated_user)

    def test_authenticate_inactive_user_does_not_allow_login(self):

        inactive_authenticated_user = self.backend.authenticate(
            request=None, username="test_yser_2@example.com", password="kkkksskss"
        )
        self.assertEqual(inactive_authenticated_user, self.inactive_user)
        self.assertFalse(inactive_authenticated_user.is_active)

    def test_get_user_valid(self):
        user = self.backend.get_user(self.backend_user.id)
        self.assertEqual(user, self.backend_user)

    def test_get_user_invalid(self):
        user = self.backend.get_user(9999)  # non-existent user ID
        self.assertIsNone(user)

    def test_get_user_inactive(self):
        user = self.backend.get_user(self.inactive_user.id)
        self.assertIsNone(user)


class EnsureDefaultAdminCommandTest(TestCase):

    def test_creates_admin(self):
        out = StringIO()
        call_command("ensure_default_admin", email="boss@example.com", password="bosspass", stdout=out)

        admin = User.objects.get(email="boss@example.com")
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)
        self.assertTrue(admin.check_password("bosspass"))
        self.assertIn("Created admin", out.getvalue())

    def test_resets_existing_admin_password(self):
        User.objects.create_user(username="boss@example.com", email="boss@example.com", password="forgotten")

        out = StringIO()
        call_command("ensure_default_admin", email="boss@example.com", password="bosspass", stdout=out)

        self.assertEqual(User.objects.filter(email="boss@example.com").count(), 1)
        admin = User.objects.get(email="boss@example.com")
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.check_password("bosspass"))
        self.assertIn("Updated admin", out.getvalue())
