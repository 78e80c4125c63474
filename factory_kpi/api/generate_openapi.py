"""
Write the OpenAPI document to interfaces/openapi.json.

Usage:
  python -m factory_kpi.api.generate_openapi
"""

import json
import os

from factory_kpi.api.main import app

# All REST routes are under /api
openapi_schema = app.openapi()

# Session auth is cookie based and not expressed by the route dependencies
openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})["sessionCookie"] = {
    "type": "apiKey",
    "in": "cookie",
    "name": "kpi_session",
}

output_dir = "interfaces"
os.makedirs(output_dir, exist_ok=True)
output_path = os.path.join(output_dir, "openapi.json")

with open(output_path, "w", encoding="utf-8") as f:
    json.dump(openapi_schema, f, indent=2, ensure_ascii=False)
