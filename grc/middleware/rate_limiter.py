"""
Per-blueprint rate limits using Flask-Limiter.

The Limiter instance is created in grc/__init__.py with no default limits;
this module applies limits per route group.

Usage:
    from grc.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
WRITE_BLUEPRINTS = ("risks", "treatments", "workshops")


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Risk / treatment / workshop routes: 60/minute
        - Health probes:                      exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        logger.debug("Rate limiter disabled (TESTING=True)")
        return

    for bp_name in WRITE_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    logger.info("Rate limiter configured: %s on %s", WRITE_LIMIT, ", ".join(WRITE_BLUEPRINTS))
