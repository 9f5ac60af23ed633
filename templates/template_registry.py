import os
import jinja2
from typing import Optional, Dict, Any, List


def progress_bar_color(percentage: float) -> str:
    if percentage >= 80:
        return "#28a745"
    if percentage >= 50:
        return "#ffc107"
    return "#dc3545"


class TemplateRegistry:
    def __init__(self, user_template_dirs: Optional[List[str]] = None):
        """
        Initialize the Jinja2 environment and register templates.
        :param user_template_dirs: Optional list of directories searched before the built-in templates
        """
        self.templates = {}
        self.jinja_env = self._create_jinja_environment(user_template_dirs)
        self._register_built_in_templates()

    def _create_jinja_environment(self, user_template_dirs: Optional[List[str]] = None) -> jinja2.Environment:
        base_dir = os.path.join(os.path.dirname(__file__), 'templates')
        search_paths = list(user_template_dirs or []) + [base_dir]

        env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(search_paths),
            autoescape=jinja2.select_autoescape(['html', 'xml', 'jinja2']),
            trim_blocks=True,
            lstrip_blocks=True
        )

        env.filters['percentage'] = lambda val: f"{val:.1f}%" if isinstance(val, (int, float)) else val
        env.globals['progress_bar_color'] = progress_bar_color

        return env

    def _register_built_in_templates(self):
        self.register_template('coverage_layout', 'coverage_report.html.jinja2')

    def register_template(self, name: str, template_path: str):
        self.templates[name] = template_path

    def get_template(self, name: str) -> jinja2.Template:
        """
        Retrieve a Jinja2 template by registered name.
        :raises ValueError: If the template name is not found
        """
        if name not in self.templates:
            raise ValueError(f"Template '{name}' not registered")
        return self.jinja_env.get_template(self.templates[name])

    def render_template(self, name: str, context: Optional[Dict[str, Any]] = None) -> str:
        template = self.get_template(name)
        return template.render(**(context or {}))
