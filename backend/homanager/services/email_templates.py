"""Email bodies for notifications."""

from typing import Any

from jinja2 import BaseLoader, Environment

# Plain text is rendered as-is; HTML escapes every variable
_text_env = Environment(loader=BaseLoader())
_html_env = Environment(loader=BaseLoader(), autoescape=True)


def render_text(template_str: str, variables: dict[str, Any]) -> str:
    return _text_env.from_string(template_str).render(**variables)


def render_html(template_str: str, variables: dict[str, Any]) -> str:
    return _html_env.from_string(template_str).render(**variables)


NOTIFICATION_TEXT = """{% if name %}Hello {{ name }},{% else %}Hello,{% endif %}

{{ title }}{% if body %}

{{ body }}{% endif %}

Open: {{ link }}"""

NOTIFICATION_HTML = (
    "<p>{% if name %}Hello {{ name }},{% else %}Hello,{% endif %}</p>"
    "<p><strong>{{ title }}</strong></p>"
    "{% if body %}<p>{{ body }}</p>{% endif %}"
    '<p><a href="{{ link }}">Open in Homanager</a></p>'
)
