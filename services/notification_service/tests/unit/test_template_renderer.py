from __future__ import annotations

from pathlib import Path

import pytest
from epecuen_core.error_enums import ErrorCode
from epecuen_service_libs.error_handling import EpecuenError

from services.notification_service.implementations.template_renderer_impl import (
    JinjaTemplateRenderer,
)


class TestActivationTemplate:
    @pytest.fixture
    def renderer(self) -> JinjaTemplateRenderer:
        return JinjaTemplateRenderer()

    async def test_activation_template_is_available(self, renderer: JinjaTemplateRenderer) -> None:
        assert await renderer.template_exists("activate_account") is True
        assert await renderer.template_exists("does_not_exist") is False

    async def test_renders_subject_name_and_token(self, renderer: JinjaTemplateRenderer) -> None:
        rendered = await renderer.render(
            "activate_account",
            {
                "name": "alice",
                "token": "tok-123",
                "activation_url": "http://localhost/v1/tokens/tok-123/consume",
            },
        )

        assert rendered.subject == "Account Activation - No Reply"
        assert "Welcome, alice!" in rendered.html_content
        assert "tok-123" in rendered.html_content
        assert "tok-123" in rendered.text_content
        assert "<" not in rendered.text_content
        assert "subject:" not in rendered.text_content

    async def test_variables_are_html_escaped(self, renderer: JinjaTemplateRenderer) -> None:
        rendered = await renderer.render(
            "activate_account",
            {"name": "<script>x</script>", "token": "t", "activation_url": "http://x"},
        )

        assert "<script>" not in rendered.html_content
        assert "&lt;script&gt;" in rendered.html_content


class TestRenderFailures:
    async def test_missing_template_is_template_error(self) -> None:
        renderer = JinjaTemplateRenderer()

        with pytest.raises(EpecuenError) as exc_info:
            await renderer.render("does_not_exist", {})

        assert exc_info.value.error_code == ErrorCode.TEMPLATE_ERROR
        assert exc_info.value.error_detail.details["template_id"] == "does_not_exist"

    async def test_undefined_variable_is_template_error(self, tmp_path: Path) -> None:
        (tmp_path / "greeting.html.j2").write_text(
            "<!-- subject: Hi -->\n<p>Hello {{ name }}</p>", encoding="utf-8"
        )
        renderer = JinjaTemplateRenderer(tmp_path)

        with pytest.raises(EpecuenError) as exc_info:
            await renderer.render("greeting", {})

        assert exc_info.value.error_code == ErrorCode.TEMPLATE_ERROR

    async def test_template_without_subject_gets_default(self, tmp_path: Path) -> None:
        (tmp_path / "plain.html.j2").write_text("<p>Hello {{ name }}</p>", encoding="utf-8")
        renderer = JinjaTemplateRenderer(tmp_path)

        rendered = await renderer.render("plain", {"name": "bob"})

        assert rendered.subject == "Epecuen - plain"
        assert rendered.text_content == "Hello bob"
