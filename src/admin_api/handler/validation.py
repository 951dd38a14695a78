"""Validate request input against per-field ``django.forms`` rules."""

from __future__ import annotations

import copy
from typing import TypeAlias, TYPE_CHECKING, Any, Mapping

from django import forms
from django.core.exceptions import ValidationError

from admin_api.logging import get_logger
from admin_api.request.transformer import FILE_PREFIX

if TYPE_CHECKING:
    from admin_api.request.request_data import RequestData

logger = get_logger("handler.validation")

ValidationRules: TypeAlias = Mapping[str, forms.Field]
ValidationMessages: TypeAlias = Mapping[str, str]

_TITLE_KEYS = ("title", "label", "placeholder")


def collect_titles(
    *field_sets: Mapping[str, Mapping[str, Any]] | None,
) -> dict[str, str]:
    """
    Map field names to human titles taken from ``title``, ``label`` or ``placeholder``.

    A title from a later field set replaces an earlier one. Every title is
    also registered under the ``files.<name>`` key used by upload rules.
    """
    titles: dict[str, str] = {}
    for fields in field_sets:
        for name, config in (fields or {}).items():
            for key in _TITLE_KEYS:
                if config.get(key):
                    titles[name] = str(config[key])
                    break
    for name, title in list(titles.items()):
        titles[f"{FILE_PREFIX}{name}"] = title
    return titles


def select_present_rules(
    rules: ValidationRules, present_keys: list[str]
) -> dict[str, forms.Field]:
    """Keep the rules whose key was submitted, preserving request order."""
    return {key: rules[key] for key in present_keys if rules.get(key) is not None}


def _messages_for(name: str, messages: ValidationMessages) -> dict[str, str]:
    general = {code: text for code, text in messages.items() if "." not in code}
    prefix = f"{name}."
    specific = {
        key[len(prefix) :]: text
        for key, text in messages.items()
        if key.startswith(prefix) and "." not in key[len(prefix) :]
    }
    return {**general, **specific}


def build_form_field(
    name: str,
    rule: forms.Field,
    messages: ValidationMessages,
    titles: Mapping[str, str],
) -> forms.Field:
    """Copy ``rule`` and apply the title and custom messages for ``name``."""
    field = copy.deepcopy(rule)
    title = titles.get(name)
    if title:
        field.label = title
    attribute = title or name
    custom = {
        code: text.replace("{attribute}", attribute)
        for code, text in _messages_for(name, messages).items()
    }
    if custom:
        field.error_messages = {**field.error_messages, **custom}
    return field


def validate_request(
    data: RequestData,
    rules: ValidationRules,
    messages: ValidationMessages,
    titles: Mapping[str, str],
    validate_only_present: bool = False,
) -> dict[str, Any]:
    """
    Validate ``data`` against ``rules``.

    Returns:
        dict[str, Any]: Cleaned values of the validated fields.

    Raises:
        ValidationError: With a ``{field: [messages]}`` dictionary when any rule fails.
    """
    if validate_only_present:
        rules = select_present_rules(rules, data.keys())
    if not rules:
        return {}

    form = forms.Form(data=data.form_data(), files=data.files())
    form.fields = {
        name: build_form_field(name, rule, messages, titles)
        for name, rule in rules.items()
    }
    if not form.is_valid():
        errors = form.errors.as_data()
        logger.debug(
            "request validation failed",
            context={"fields": sorted(errors.keys())},
        )
        raise ValidationError(errors)
    return form.cleaned_data
