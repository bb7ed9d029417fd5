import json

from django.test import TestCase, Client


class HealthTestCase(TestCase):

    def test_health(self):
        response = Client().get('/api/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(str(response.content, 'utf-8')), {"status": "ok"})

    def test_unknown_route_is_json(self):
        response = Client().get('/api/does-not-exist')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(json.loads(str(response.content, 'utf-8'))['error'], "Not found")
