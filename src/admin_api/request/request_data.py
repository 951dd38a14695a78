"""Uniform read access to query, form, JSON and uploaded request input."""

from __future__ import annotations

import json
import re
from typing import TypeAlias, Any, Iterable

from django.http import HttpRequest, QueryDict
from django.utils.datastructures import MultiValueDict

from admin_api.errors import InvalidRequestBodyError

_KEY_PATTERN = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")
_SEGMENT_PATTERN = re.compile(r"\[([^\[\]]*)\]")
_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

Container: TypeAlias = dict[Any, Any] | list[Any]


def is_positional_key(key: Any) -> bool:
    """Return True for keys produced by list-style input (``filters[]=x`` or ``filters[0]=x``)."""
    return isinstance(key, int) or (isinstance(key, str) and key.isdigit())


def split_key(key: str) -> list[str]:
    """Split ``"filters[!status][]"`` into ``["filters", "!status", ""]``."""
    match = _KEY_PATTERN.match(key)
    if match is None:
        return [key]
    return [match.group(1), *_SEGMENT_PATTERN.findall(match.group(2))]


def _next_index(node: dict[Any, Any]) -> int:
    positional = [key for key in node if isinstance(key, int)]
    return max(positional) + 1 if positional else 0


def _child_for(segment: str) -> Container:
    return [] if segment == "" else {}


def assign_path(root: dict[Any, Any], path: list[str], value: Any) -> None:
    """
    Store ``value`` in ``root`` following bracket ``path`` segments.

    Empty segments append. A list that later receives a named segment turns
    into a dict with integer keys for its existing entries, the same way
    mixed keyed and positional form arrays behave.
    """
    node: Container = root
    for index, segment in enumerate(path):
        last = index == len(path) - 1
        if isinstance(node, list):
            if last:
                node.append(value)
                return
            child = _child_for(path[index + 1])
            node.append(child)
            node = child
            continue

        key: Any = segment if segment != "" else _next_index(node)
        if last:
            node[key] = value
            return
        following = path[index + 1]
        child = node.get(key)
        if not isinstance(child, (dict, list)):
            child = _child_for(following)
            node[key] = child
        elif isinstance(child, list) and following != "":
            child = dict(enumerate(child))
            node[key] = child
        node = child


def parse_bracket_params(
    params: QueryDict | MultiValueDict,
) -> tuple[dict[str, Any], dict[str, list[Any]]]:
    """
    Parse a ``QueryDict`` into nested data plus the raw multi-values per plain key.

    Returns:
        tuple: ``(data, multi)`` where ``data`` holds nested structures for
        bracketed keys and the last value for plain keys, and ``multi`` keeps
        every submitted value of plain keys for ``getlist``.
    """
    data: dict[str, Any] = {}
    multi: dict[str, list[Any]] = {}
    for key in params.keys():
        values = params.getlist(key)
        path = split_key(key)
        if len(path) == 1:
            data[key] = values[-1] if values else None
            multi[key] = list(values)
            continue
        for value in values:
            assign_path(data, path, value)
    return data, multi


class RequestData:
    """
    Merged view of a request's query string, body and uploaded files.

    Body values win over query-string values with the same top-level key.
    JSON bodies are used as-is. Form bodies go through bracket parsing, like
    the query string.
    """

    def __init__(self, request: HttpRequest) -> None:
        self.request = request
        self._files: MultiValueDict = MultiValueDict()
        query_data, query_multi = parse_bracket_params(request.GET)
        body_data, body_multi = self._read_body()
        self._data: dict[str, Any] = {**query_data, **body_data}
        self._multi: dict[str, list[Any]] = {
            key: values for key, values in query_multi.items() if key not in body_data
        }
        self._multi.update(body_multi)

    def _read_body(self) -> tuple[dict[str, Any], dict[str, list[Any]]]:
        request = self.request
        content_type = request.content_type or ""
        if content_type == "application/json":
            if not request.body:
                return {}, {}
            try:
                payload = json.loads(request.body)
            except ValueError as error:
                raise InvalidRequestBodyError(error) from error
            if not isinstance(payload, dict):
                raise InvalidRequestBodyError("expected a JSON object")
            return payload, {}

        if content_type not in _FORM_CONTENT_TYPES:
            return {}, {}
        if request.method == "POST":
            self._files = request.FILES
            return parse_bracket_params(request.POST)
        if content_type == "multipart/form-data":
            post, files = request.parse_file_upload(request.META, request)
            self._files = files
            return parse_bracket_params(post)
        return parse_bracket_params(QueryDict(request.body, encoding=request.encoding))

    @property
    def user(self) -> Any:
        return getattr(self.request, "user", None)

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def files(self) -> MultiValueDict:
        return self._files

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def getlist(self, key: str) -> list[Any]:
        value = self._data.get(key)
        if isinstance(value, list):
            return value
        if key in self._multi:
            return list(self._multi[key])
        if key not in self._data or value is None:
            return []
        if isinstance(value, dict):
            return list(value.values())
        return [value]

    def has(self, key: str) -> bool:
        return key in self._data or key in self._files

    def keys(self) -> list[str]:
        keys: Iterable[str] = [*self._data.keys(), *self._files.keys()]
        return list(dict.fromkeys(keys))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def form_data(self) -> FormData:
        """Return the merged data in the mapping shape ``django.forms`` widgets expect."""
        return FormData(self)


class FormData(dict[str, Any]):
    """Plain dict of request values that also answers ``getlist`` for form widgets."""

    def __init__(self, source: RequestData) -> None:
        super().__init__(source.data)
        self._source = source

    def getlist(self, key: str) -> list[Any]:
        return self._source.getlist(key)
