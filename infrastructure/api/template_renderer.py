"""Render the API definition template and parse it into a document.

Rendering and parsing are separate stages with separate failures: a template
that references an unknown variable fails in ``render``; a rendered text that
is not a JSON object fails in ``parse``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, UndefinedError, meta

from infrastructure.errors import ConfigurationError, TemplateParseError, TemplateVariableError

DEFAULT_TEMPLATE = Path(__file__).parent / "templates" / "api_schema.json"

LAMBDA_INVOKE_PATH = "lambda:path/2015-03-31/functions/{function_arn}/invocations"

_ENV = Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=True)


def invocation_target(region: str, function_arn: str, partition: str = "aws") -> str:
    """Return the API Gateway integration URI that invokes ``function_arn``."""
    return f"arn:{partition}:apigateway:{region}:" + LAMBDA_INVOKE_PATH.format(function_arn=function_arn)


def load_template(path: Optional[Path] = None) -> str:
    template_path = path or DEFAULT_TEMPLATE
    try:
        return template_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(f"API template not found: {template_path}") from exc


def referenced_variables(template: str) -> set[str]:
    """Return the placeholder names used by ``template``."""
    try:
        return set(meta.find_undeclared_variables(_ENV.parse(template)))
    except TemplateSyntaxError as exc:
        raise TemplateParseError(f"API template is not a valid template: {exc}") from exc


def render(template: str, variables: Mapping[str, Any]) -> str:
    """Substitute ``variables`` into ``template``.

    Every referenced placeholder must be supplied; extra variables are ignored.
    """
    missing = referenced_variables(template) - set(variables)
    if missing:
        raise TemplateVariableError(missing)
    try:
        return _ENV.from_string(template).render(**dict(variables))
    except UndefinedError as exc:
        raise TemplateVariableError([str(exc)]) from exc


def parse(text: str) -> Dict[str, Any]:
    """Parse a rendered definition into a JSON object."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TemplateParseError(f"Rendered API definition is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise TemplateParseError("Rendered API definition must be a JSON object")
    return document
