from __future__ import annotations

from typing import Any

import pytest

from leadsort.prompts.loader import (
    PromptLoadError,
    bundled_prompt_versions,
    load_leadsort_prompt,
    render_prompt,
)


def test_load_leadsort_prompt_uses_bundled_fallback_when_promptorium_fails() -> None:
    # input
    input_prompt_key = "classify-lead"

    # act
    output = load_leadsort_prompt(input_prompt_key)

    # assert
    assert "{{JOB_TITLE}}" in output
    assert "Procurement" in output


def test_load_leadsort_prompt_prefers_promptorium(monkeypatch: Any) -> None:
    # helper setup
    monkeypatch.setattr(
        "leadsort.prompts.loader.promptorium_load_prompt",
        lambda prompt_key: f"stored prompt for {prompt_key}",
    )

    # act
    output = load_leadsort_prompt("classify-lead")

    # assert
    assert output == "stored prompt for classify-lead"


def test_load_leadsort_prompt_falls_back_when_promptorium_returns_non_text(
    monkeypatch: Any,
) -> None:
    # helper setup
    monkeypatch.setattr(
        "leadsort.prompts.loader.promptorium_load_prompt",
        lambda prompt_key: None,
    )

    # act
    output = load_leadsort_prompt("classify-lead")

    # assert
    assert "{{COMPANY}}" in output


def test_load_leadsort_prompt_raises_when_prompt_missing() -> None:
    # input
    input_prompt_key = "missing-prompt-key"

    # act + assert
    with pytest.raises(PromptLoadError, match=input_prompt_key):
        load_leadsort_prompt(input_prompt_key)


def test_render_prompt_replaces_every_placeholder() -> None:
    # input
    template = "{{LEAD_NAME}} is {{JOB_TITLE}} at {{COMPANY}}. Again: {{LEAD_NAME}}"

    # act
    output = render_prompt(
        template,
        {"LEAD_NAME": "Ada Lovelace", "JOB_TITLE": "Owner", "COMPANY": "Velvet"},
    )

    # assert
    assert output == "Ada Lovelace is Owner at Velvet. Again: Ada Lovelace"


def test_render_prompt_raises_for_placeholder_without_value() -> None:
    with pytest.raises(PromptLoadError, match="COMPANY"):
        render_prompt("{{LEAD_NAME}} at {{COMPANY}}", {"LEAD_NAME": "Ada"})


def test_render_prompt_does_not_expand_placeholders_inside_values() -> None:
    output = render_prompt("Title: {{JOB_TITLE}}", {"JOB_TITLE": "{{COMPANY}}"})

    assert output == "Title: {{COMPANY}}"


def test_bundled_prompt_versions_lists_classify_prompt() -> None:
    versions = bundled_prompt_versions("classify-lead")

    assert [path.name for path in versions][-1].startswith("classify-lead-")
    assert bundled_prompt_versions("missing-prompt-key") == []
