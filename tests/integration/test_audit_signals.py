# type: ignore

from django.test import TestCase

from admin_api.signals import SingleModelEvent
from tests.factories import AuthorFactory
from tests.testapp.models import Author


class SingleModelEventTests(TestCase):
    def test_get_model_instance(self):
        author = AuthorFactory()
        event = SingleModelEvent(
            entity="authors", model=Author, user_key=7, key=author.pk, action="update"
        )
        self.assertEqual(event.get_model_instance(), author)

    def test_deleted_instance(self):
        author = AuthorFactory()
        key = author.pk
        author.delete()
        event = SingleModelEvent(
            entity="authors", model=Author, user_key=None, key=key, action="destroy"
        )
        self.assertIsNone(event.get_model_instance())

    def test_events_are_immutable(self):
        event = SingleModelEvent(
            entity="authors", model=Author, user_key=None, key=1, action="create"
        )
        with self.assertRaises(AttributeError):
            event.key = 2
