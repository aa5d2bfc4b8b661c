from pathlib import Path

from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.models.review import MAX_RATING

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def rating_display(value) -> str:
    """One decimal place, or N/A when there is nothing to average."""
    if value is None:
        return "N/A"
    return f"{value:.1f}"


def star_rating(value, out_of: int = MAX_RATING) -> str:
    if value is None:
        return ""
    full = int(value + 0.5)  # half-up
    return "★" * full + "☆" * (out_of - full)


env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"])
)
env.filters["rating_display"] = rating_display
env.filters["star_rating"] = star_rating


def render_template(template_path: str, **context) -> str:
    template = env.get_template(template_path)
    return template.render(**context)


def template_response(template_path: str, status_code: int = 200, **context) -> HTMLResponse:
    return HTMLResponse(render_template(template_path, **context), status_code=status_code)
