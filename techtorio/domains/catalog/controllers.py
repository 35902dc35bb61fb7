"""Category controllers (API)."""

from __future__ import annotations

from flask import Blueprint, jsonify

from techtorio.domains.catalog.services import get_active_tree

catalog_bp = Blueprint("catalog_api", __name__)


@catalog_bp.get("")
def api_list_categories():
    return jsonify({"ok": True, "categories": get_active_tree()})
