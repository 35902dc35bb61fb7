"""Category read helpers."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional

from techtorio.domains.catalog.models import Category


def get_active_tree() -> List[dict]:
    """Active categories as nested dicts; children of inactive parents are hidden."""
    categories = Category.query.filter_by(is_active=True).order_by(Category.id).all()
    by_parent: Dict[Optional[int], List[Category]] = defaultdict(list)
    for category in categories:
        by_parent[category.parent_id].append(category)

    def _build(parent_id: Optional[int], level: int) -> List[dict]:
        return [
            {
                "id": c.id,
                "name": c.name,
                "description": c.description,
                "image_url": c.image_url,
                "level": level,
                "children": _build(c.id, level + 1),
            }
            for c in by_parent.get(parent_id, [])
        ]

    return _build(None, 1)
