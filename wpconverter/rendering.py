"""
Template rendering for output documents.
"""

from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined


class TemplateRenderer:
    """Renders the Jinja templates that lay out posts and comments."""

    def __init__(self, template_dir: Optional[str] = None):
        """Initialize renderer with template directory."""
        if template_dir is None:
            # Default to templates directory next to this module
            template_dir = Path(__file__).parent / "templates"

        self.template_dir = Path(template_dir)
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, **context: Any) -> str:
        return self.jinja_env.get_template(template_name).render(**context)
