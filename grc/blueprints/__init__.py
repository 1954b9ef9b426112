"""
GRC Risk Workflow Service
Blueprint registry.
"""

from flask import request


def paginate(items, default_limit=200, max_limit=1000):
    """Apply limit/offset pagination to an already-ordered list.

    Query params:
        limit  : max items (default 200, capped at max_limit)
        offset : starting position (default 0)

    Returns:
        (page_items, total_count)
    """
    total = len(items)
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    return items[offset:offset + max(limit, 0)], total


def json_body() -> dict:
    """Request JSON as a dict; anything else becomes an empty payload."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def register_blueprints(app):
    from grc.blueprints.health_bp import health_bp
    from grc.blueprints.risk_bp import risk_bp
    from grc.blueprints.treatment_bp import treatment_bp
    from grc.blueprints.workshop_bp import workshop_bp

    for bp in (health_bp, risk_bp, treatment_bp, workshop_bp):
        app.register_blueprint(bp)
