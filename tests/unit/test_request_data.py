import json

from django.core.files.uploadedfile import SimpleUploadedFile
from django.http import QueryDict
from django.test import RequestFactory, SimpleTestCase

from admin_api.errors import InvalidRequestBodyError
from admin_api.request.request_data import (
    RequestData,
    assign_path,
    is_positional_key,
    parse_bracket_params,
    split_key,
)


class BracketParsingTests(SimpleTestCase):
    def test_split_key(self):
        self.assertEqual(split_key("filters[!status][]"), ["filters", "!status", ""])
        self.assertEqual(split_key("search"), ["search"])
        self.assertEqual(split_key("broken[key"), ["broken[key"])

    def test_positional_keys(self):
        self.assertTrue(is_positional_key(0))
        self.assertTrue(is_positional_key("12"))
        self.assertFalse(is_positional_key("status"))

    def test_mapping_and_lists(self):
        params = QueryDict(
            "filters[status]=open&filters[tags][]=1&filters[tags][]=2&sort[]=title&search=x"
        )
        data, multi = parse_bracket_params(params)
        self.assertEqual(
            data,
            {
                "filters": {"status": "open", "tags": ["1", "2"]},
                "sort": ["title"],
                "search": "x",
            },
        )
        self.assertEqual(multi, {"search": ["x"]})

    def test_repeated_plain_keys_keep_last_value(self):
        data, multi = parse_bracket_params(QueryDict("tag=a&tag=b"))
        self.assertEqual(data["tag"], "b")
        self.assertEqual(multi["tag"], ["a", "b"])

    def test_list_turns_into_mapping_when_named_key_follows(self):
        root: dict = {}
        assign_path(root, ["filters", ""], "active")
        assign_path(root, ["filters", "status"], "open")
        self.assertEqual(root, {"filters": {0: "active", "status": "open"}})


class RequestDataTests(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def test_query_string(self):
        data = RequestData(self.factory.get("/", {"filters[title]": "Dune", "page": "2"}))
        self.assertEqual(data.get("filters"), {"title": "Dune"})
        self.assertEqual(data.get("page"), "2")
        self.assertTrue(data.has("page"))
        self.assertIn("filters", data)
        self.assertIsNone(data.get("missing"))
        self.assertEqual(data.get("missing", "default"), "default")

    def test_json_body_wins_over_query(self):
        request = self.factory.post(
            "/?title=query&page=1",
            data=json.dumps({"title": "body", "tags": [1, 2]}),
            content_type="application/json",
        )
        data = RequestData(request)
        self.assertEqual(data.get("title"), "body")
        self.assertEqual(data.get("page"), "1")
        self.assertEqual(data.getlist("tags"), [1, 2])
        self.assertEqual(data.getlist("title"), ["body"])

    def test_json_body_must_be_an_object(self):
        request = self.factory.post("/", data="[1, 2]", content_type="application/json")
        with self.assertRaises(InvalidRequestBodyError):
            RequestData(request)

    def test_malformed_json_body(self):
        request = self.factory.post("/", data="{nope", content_type="application/json")
        with self.assertRaises(InvalidRequestBodyError):
            RequestData(request)

    def test_form_body_with_upload(self):
        upload = SimpleUploadedFile("cover.txt", b"cover")
        request = self.factory.post(
            "/", data={"title": "Dune", "tags[]": ["1", "2"], "files.cover": upload}
        )
        data = RequestData(request)
        self.assertEqual(data.get("title"), "Dune")
        self.assertEqual(data.get("tags"), ["1", "2"])
        self.assertIn("files.cover", data.files())
        self.assertTrue(data.has("files.cover"))
        self.assertEqual(data.keys(), ["title", "tags", "files.cover"])

    def test_urlencoded_put_body(self):
        request = self.factory.put(
            "/",
            data="title=Dune&pages=412",
            content_type="application/x-www-form-urlencoded",
        )
        data = RequestData(request)
        self.assertEqual(data.get("title"), "Dune")
        self.assertEqual(data.get("pages"), "412")

    def test_getlist_variants(self):
        data = RequestData(self.factory.get("/?tag=a&tag=b&map[x]=1&map[y]=2"))
        self.assertEqual(data.getlist("tag"), ["a", "b"])
        self.assertEqual(data.getlist("map"), ["1", "2"])
        self.assertEqual(data.getlist("missing"), [])

    def test_form_data_supports_getlist(self):
        data = RequestData(self.factory.get("/?tag=a&tag=b"))
        form_data = data.form_data()
        self.assertEqual(form_data["tag"], "b")
        self.assertEqual(form_data.getlist("tag"), ["a", "b"])

    def test_user(self):
        request = self.factory.get("/")
        request.user = "someone"
        self.assertEqual(RequestData(request).user, "someone")
