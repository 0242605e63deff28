# =============================================================================
# content_core/__init__.py
# Resilient dual-backend content store for the site and its admin back-office
# =============================================================================

__version__ = "1.0.0"
