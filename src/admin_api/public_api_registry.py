"""Central registry for lazy public API exports.

Each entry maps a public name to either the module path string or a
``(module_path, attribute_name)`` tuple. A plain string means that the public
name and the attribute name are identical.
"""

from __future__ import annotations

from typing import TypeAlias, Mapping

from admin_api.utils.public_api import ExportTarget

LazyExportMap: TypeAlias = Mapping[str, ExportTarget]


ADMIN_API_EXPORTS: LazyExportMap = {
    "ModelHandler": ("admin_api.handler.model_handler", "ModelHandler"),
    "FieldConfig": ("admin_api.handler.fields", "FieldConfig"),
    "RequestData": ("admin_api.request.request_data", "RequestData"),
    "RequestTransformer": ("admin_api.request.transformer", "RequestTransformer"),
    "AdminRegistry": ("admin_api.registry", "AdminRegistry"),
    "SingleModelEvent": ("admin_api.signals", "SingleModelEvent"),
    "HasAdminHandler": ("admin_api.contracts", "HasAdminHandler"),
    "ConfiguresAdminHandler": ("admin_api.contracts", "ConfiguresAdminHandler"),
}
