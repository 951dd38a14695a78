from decimal import Decimal

from django.test import TestCase

from admin_api.handler.fields import get_relation, prepare_fields
from admin_api.handler.transform import (
    default_representation,
    expand_related,
    load_related,
    related_keys,
    transform,
)
from tests.factories import AuthorFactory, BookFactory, ChapterFactory, TagFactory
from tests.testapp.models import Author, Book, Chapter, Review


class DefaultRepresentationTests(TestCase):
    def test_hidden_attributes_are_excluded(self):
        author = AuthorFactory(name="Ann")
        data = default_representation(author)
        self.assertEqual(
            data,
            {"id": author.pk, "name": "Ann", "active": True, "birthday": None},
        )

    def test_visible_attributes_include_properties(self):
        book = BookFactory(title="Dune", pages=412, price=Decimal("9.90"))
        self.assertEqual(
            default_representation(book),
            {"id": book.pk, "title": "Dune", "price": "9.90", "label": "Dune (412)"},
        )

    def test_foreign_keys_use_attname(self):
        chapter = ChapterFactory()
        data = default_representation(chapter)
        self.assertEqual(data["book_id"], chapter.book_id)
        self.assertNotIn("book", data)


class RelatedLoadingTests(TestCase):
    def test_load_related(self):
        tag = TagFactory()
        book = BookFactory(tags=[tag])
        self.assertEqual(load_related(book, get_relation(Book, "tags")), [tag])
        self.assertEqual(load_related(book, get_relation(Book, "author")), book.author)
        self.assertEqual(load_related(Book(), get_relation(Book, "chapters")), [])

    def test_unset_required_foreign_key_loads_none(self):
        relation = get_relation(Review, "book")
        self.assertIsNone(load_related(Review(body="Great"), relation))
        self.assertIsNone(load_related(Review(body="Great", book_id=999999), relation))

    def test_keys_and_expansion(self):
        author = AuthorFactory(name="Ann")
        self.assertEqual(related_keys(author), author.pk)
        self.assertEqual(related_keys([author]), [author.pk])
        self.assertIsNone(related_keys(None))
        self.assertEqual(expand_related(author)["name"], "Ann")
        self.assertEqual(expand_related([author])[0]["id"], author.pk)
        self.assertIsNone(expand_related(None))


class TransformTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.author = AuthorFactory(name="Ann")
        cls.tag = TagFactory(name="sf")
        cls.book = BookFactory(title="Dune", pages=412, author=cls.author, tags=[cls.tag])
        cls.chapter = ChapterFactory(title="Prologue", book=cls.book)

    def test_without_fields_uses_default_representation(self):
        self.assertEqual(transform(self.book, None), default_representation(self.book))

    def test_relations_as_keys(self):
        fields = prepare_fields(Book, ["title", "author", "tags", "chapters", "label"])
        self.assertEqual(
            transform(self.book, fields),
            {
                "id": self.book.pk,
                "title": "Dune",
                "label": "Dune (412)",
                "author": self.author.pk,
                "tags": [self.tag.pk],
                "chapters": [self.chapter.pk],
            },
        )

    def test_full_relations_expand_non_editable_fields(self):
        fields = prepare_fields(
            Book, {"title": None, "author": None, "tags": {"editable": True}}
        )
        data = transform(self.book, fields, full_relations=True)
        self.assertEqual(
            data["author"],
            {"id": self.author.pk, "name": "Ann", "active": True, "birthday": None},
        )
        self.assertEqual(data["tags"], [self.tag.pk])

    def test_primary_key_comes_first(self):
        fields = prepare_fields(Chapter, ["title", "book"])
        data = transform(self.chapter, fields)
        self.assertEqual(list(data), ["id", "title", "book"])

    def test_missing_single_relation(self):
        chapter = ChapterFactory(book=None)
        data = transform(chapter, prepare_fields(Chapter, ["book"]), full_relations=True)
        self.assertIsNone(data["book"])

    def test_unsaved_item(self):
        data = transform(Author(name="New"), prepare_fields(Author, ["name", "books"]))
        self.assertEqual(data, {"id": None, "name": "New", "books": []})
