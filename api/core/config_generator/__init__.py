"""
NGINX configuration generator.

Generates NGINX virtual-host files from .txt templates and registers
them in the site registry.
"""

from .generator import TemplateGenerator, get_template_generator

__all__ = ["TemplateGenerator", "get_template_generator"]
