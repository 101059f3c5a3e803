"""Catalogue bounded context — product variant dimensions and combinations.

Vendors define up to three variant dimensions per product; the catalogue
generates the cartesian product of their option values and keeps one
combination per canonical key.
"""

from protean.domain import Domain

from catalogue.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging(log_dir="logs", log_file_prefix="marketstock")

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
catalogue = Domain(name="catalogue")
