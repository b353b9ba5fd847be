"""Jinja2 template renderer for Notification Service.

Templates live under the service's ``templates/`` directory as
``<template_id>.html.j2`` and declare their subject in an HTML comment:
``<!-- subject: Account Activation - No Reply -->``.
"""

from __future__ import annotations

import re
from pathlib import Path
from uuid import UUID

from epecuen_service_libs.error_handling import raise_template_error
from epecuen_service_libs.logging_utils import create_service_logger
from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)

from services.notification_service.protocols import RenderedTemplate, TemplateRenderer

logger = create_service_logger("notification_service.template_renderer")

_NO_CORRELATION = UUID("00000000-0000-0000-0000-000000000000")
_SUBJECT_PATTERN = re.compile(r"<!--\s*subject:\s*(.+?)\s*-->", re.IGNORECASE)


class JinjaTemplateRenderer(TemplateRenderer):
    """Async Jinja2 renderer with subject extraction and a plain-text part."""

    def __init__(self, template_path: str | Path = "templates") -> None:
        """
        Args:
            template_path: Absolute directory, or a path relative to the service root
        """
        path = Path(template_path)
        if not path.is_absolute():
            path = Path(__file__).parent.parent / path
        self.template_dir = path

        logger.info(f"Initializing Jinja2 renderer with template directory: {self.template_dir}")

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml", "j2"]),
            undefined=StrictUndefined,
            enable_async=True,
        )

    async def render(self, template_id: str, variables: dict[str, str]) -> RenderedTemplate:
        template_filename = f"{template_id}.html.j2"
        logger.debug(
            f"Rendering template: {template_filename} with variables: {list(variables.keys())}"
        )

        try:
            template = self.env.get_template(template_filename)
            html_content = await template.render_async(**variables)
        except TemplateNotFound:
            logger.error(f"Template not found: {template_filename}")
            raise_template_error(
                service="notification_service",
                operation="render_template",
                template_id=template_id,
                message=f"Template not found: {template_id}",
                correlation_id=_NO_CORRELATION,
            )
        except TemplateError as e:
            logger.error(f"Error rendering template {template_filename}: {e}", exc_info=True)
            raise_template_error(
                service="notification_service",
                operation="render_template",
                template_id=template_id,
                message=f"Template rendering failed: {e}",
                correlation_id=_NO_CORRELATION,
            )

        subject = self._extract_subject(html_content)
        if not subject:
            logger.warning(f"No subject found in template {template_filename}, using default")
            subject = f"Epecuen - {template_id}"

        return RenderedTemplate(
            subject=subject,
            html_content=html_content,
            text_content=self._generate_text_content(html_content),
        )

    async def template_exists(self, template_id: str) -> bool:
        return (self.template_dir / f"{template_id}.html.j2").is_file()

    def _extract_subject(self, html_content: str) -> str | None:
        match = _SUBJECT_PATTERN.search(html_content)
        return match.group(1).strip() if match else None

    def _generate_text_content(self, html_content: str) -> str:
        """Plain-text alternative derived from the rendered HTML."""
        text_content = _SUBJECT_PATTERN.sub("", html_content)
        text_content = re.sub(r"<(style|title)[^>]*>.*?</\1>", "", text_content, flags=re.S | re.I)
        text_content = re.sub(r"<br\s*/?>", "\n", text_content, flags=re.IGNORECASE)
        text_content = re.sub(r"</?(p|div|h[1-6]|tr)[^>]*>", "\n", text_content, flags=re.I)
        text_content = re.sub(r"<[^>]+>", "", text_content)

        for entity, char in (
            ("&nbsp;", " "),
            ("&lt;", "<"),
            ("&gt;", ">"),
            ("&quot;", '"'),
            ("&#39;", "'"),
            ("&amp;", "&"),
        ):
            text_content = text_content.replace(entity, char)

        text_content = re.sub(r"[ \t]+", " ", text_content)
        text_content = re.sub(r"\n\s*\n+", "\n\n", text_content)
        return text_content.strip()
