"""Jinja2 rendering for notification bodies.

Chat alerts are rendered as plain text. Email alerts are HTML and are
autoescaped because they embed respondent-supplied text (email address,
use cases). Both use StrictUndefined so a template referring to a field
the summary does not provide fails loudly instead of rendering blanks.
"""

from typing import Dict, Optional, Tuple

from jinja2 import BaseLoader, Environment, StrictUndefined, Template, TemplateError

from pollstats.logging_config import get_logger

logger = get_logger(__name__)


class TemplateRenderError(Exception):
    """Raised when a notification template cannot be rendered."""
    pass


class TemplateRenderer:
    """Renders notification templates, compiling each template once."""

    def __init__(self):
        self.text_env = Environment(
            loader=BaseLoader(),
            autoescape=False,
            undefined=StrictUndefined,
        )
        self.html_env = Environment(
            loader=BaseLoader(),
            autoescape=True,
            undefined=StrictUndefined,
        )
        self._compiled: Dict[Tuple[bool, str], Template] = {}

    def _template(self, source: str, html: bool) -> Template:
        key = (html, source)
        template = self._compiled.get(key)
        if template is None:
            env = self.html_env if html else self.text_env
            template = env.from_string(source)
            self._compiled[key] = template
        return template

    def render(self, template_text: str, context: dict, html: bool = False) -> str:
        """Render a notification template.

        Args:
            template_text: Jinja2 template source
            context: Template variables
            html: Escape variables for an HTML body

        Returns:
            Rendered text

        Raises:
            TemplateRenderError: If the template is invalid or a variable is missing

        Example:
            >>> TemplateRenderer().render("Price: ${{ price }}/month", {"price": 25})
            'Price: $25/month'
        """
        try:
            return self._template(template_text, html).render(context)
        except TemplateError as e:
            logger.error(f"Template rendering error: {e}")
            raise TemplateRenderError(f"Failed to render template: {e}") from e


_renderer: Optional[TemplateRenderer] = None


def get_template_renderer() -> TemplateRenderer:
    """Return the shared renderer (and its compiled templates)."""
    global _renderer
    if _renderer is None:
        _renderer = TemplateRenderer()
    return _renderer
