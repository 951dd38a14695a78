import pytest

import admin_api
from admin_api.handler.model_handler import ModelHandler
from admin_api.public_api_registry import ADMIN_API_EXPORTS
from admin_api.registry import AdminRegistry
from admin_api.utils.public_api import (
    MissingExportError,
    export_dir,
    export_location,
    resolve_export,
)


def test_lazy_exports_resolve() -> None:
    assert admin_api.ModelHandler is ModelHandler
    assert admin_api.AdminRegistry is AdminRegistry


def test_every_export_is_importable() -> None:
    for name in ADMIN_API_EXPORTS:
        assert getattr(admin_api, name) is not None


def test_unknown_export_raises() -> None:
    with pytest.raises(MissingExportError):
        admin_api.DoesNotExist  # noqa: B018


def test_dir_lists_exports() -> None:
    assert "ModelHandler" in dir(admin_api)


def test_resolved_export_is_cached_in_namespace() -> None:
    namespace = {"__name__": "fake_package"}
    exports = {"AdminRegistry": ("admin_api.registry", "AdminRegistry")}

    value = resolve_export("AdminRegistry", exports=exports, namespace=namespace)

    assert value is AdminRegistry
    assert namespace["AdminRegistry"] is AdminRegistry
    assert export_dir(exports=exports, namespace=namespace) == ["AdminRegistry", "__name__"]


def test_missing_export_names_the_package() -> None:
    with pytest.raises(MissingExportError, match="'fake_package' has no attribute 'Nope'"):
        resolve_export("Nope", exports={}, namespace={"__name__": "fake_package"})


def test_export_location_defaults_attribute_to_public_name() -> None:
    assert export_location("registry", "admin_api.registry") == ("admin_api.registry", "registry")
    assert export_location("Handler", ("admin_api.handler", "ModelHandler")) == (
        "admin_api.handler",
        "ModelHandler",
    )
