from django.test import SimpleTestCase

from admin_api.handler.fields import (
    RelationKind,
    default_item_field_names,
    get_concrete_field,
    get_relation,
    infer_field_type,
    prepare_fields,
)
from tests.testapp.models import Author, Book, Chapter, Tag


class RelationIntrospectionTests(SimpleTestCase):
    def test_forward_foreign_key(self):
        relation = get_relation(Book, "author")
        self.assertEqual(relation.kind, RelationKind.BELONGS_TO)
        self.assertIs(relation.related_model, Author)
        self.assertFalse(relation.multiple)

    def test_many_to_many(self):
        relation = get_relation(Book, "tags")
        self.assertEqual(relation.kind, RelationKind.MANY_TO_MANY)
        self.assertTrue(relation.multiple)

    def test_reverse_many_to_many_uses_accessor(self):
        relation = get_relation(Tag, "books")
        self.assertEqual(relation.kind, RelationKind.MANY_TO_MANY)
        self.assertIs(relation.related_model, Book)

    def test_reverse_foreign_key(self):
        relation = get_relation(Book, "chapters")
        self.assertEqual(relation.kind, RelationKind.HAS_MANY)
        self.assertIs(relation.related_model, Chapter)
        self.assertEqual(relation.foreign_key.attname, "book_id")

    def test_plain_attributes_are_not_relations(self):
        self.assertIsNone(get_relation(Book, "title"))
        self.assertIsNone(get_relation(Book, "label"))
        self.assertIsNone(get_relation(Book, "missing"))

    def test_concrete_field_by_attname(self):
        self.assertEqual(get_concrete_field(Book, "author_id").name, "author")
        self.assertIsNone(get_concrete_field(Book, "tags"))


class InferFieldTypeTests(SimpleTestCase):
    def test_scalar_types(self):
        self.assertEqual(infer_field_type(Book, "published_at"), {"type": "datetime"})
        self.assertEqual(infer_field_type(Author, "birthday"), {"type": "date"})
        self.assertEqual(infer_field_type(Author, "active"), {"type": "bool"})
        self.assertEqual(infer_field_type(Book, "price"), {"type": "decimal"})
        self.assertEqual(infer_field_type(Book, "pages"), {"type": "int"})
        self.assertEqual(infer_field_type(Book, "cover"), {"type": "file"})

    def test_text_and_properties_have_no_type(self):
        self.assertEqual(infer_field_type(Book, "title"), {})
        self.assertEqual(infer_field_type(Book, "label"), {})

    def test_relations(self):
        self.assertEqual(
            infer_field_type(Book, "author"),
            {"type": "relation", "entity": "testapp-author"},
        )
        self.assertEqual(
            infer_field_type(Book, "tags"),
            {"type": "relation", "multiple": True, "entity": "testapp-tag"},
        )


class PrepareFieldsTests(SimpleTestCase):
    def test_plain_names_get_defaults(self):
        prepared = prepare_fields(Book, ["title", "pages"], {"sortable": True})
        self.assertEqual(
            prepared,
            {"title": {"sortable": True}, "pages": {"sortable": True, "type": "int"}},
        )
        self.assertEqual(list(prepared), ["title", "pages"])

    def test_defaults_are_copied(self):
        defaults = {"sortable": True}
        prepared = prepare_fields(Book, ["title"], defaults)
        prepared["title"]["sortable"] = False
        self.assertEqual(defaults, {"sortable": True})

    def test_explicit_keys_win(self):
        prepared = prepare_fields(
            Book, {"author": {"entity": "writers", "editable": True}, "title": None}
        )
        self.assertEqual(
            prepared["author"],
            {"entity": "writers", "editable": True, "type": "relation"},
        )
        self.assertEqual(prepared["title"], {})

    def test_explicit_type_skips_inference(self):
        prepared = prepare_fields(Book, [("pages", {"type": "text"})])
        self.assertEqual(prepared, {"pages": {"type": "text"}})

    def test_default_item_fields(self):
        self.assertEqual(
            default_item_field_names(Book),
            ["title", "author", "price", "pages", "published_at", "cover", "tags"],
        )
