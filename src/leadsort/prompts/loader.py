from __future__ import annotations

from pathlib import Path
import re

from loguru import logger
from promptorium import load_prompt as promptorium_load_prompt

_BUNDLED_ROOT = Path(__file__).resolve().parent
_VERSION_SUFFIX = re.compile(r"-(?P<version>\d+)\.md")
_PLACEHOLDER = re.compile(r"\{\{(?P<name>[A-Z][A-Z0-9_]*)\}\}")


class PromptLoadError(Exception):
    """Raised when a prompt cannot be loaded or rendered."""


def load_leadsort_prompt(prompt_key: str) -> str:
    """Return the prompt text for ``prompt_key``.

    The promptorium store wins when it returns text. Otherwise the newest
    bundled ``<key>-<N>.md`` shipped inside this package is used.

    Raises:
        PromptLoadError: If neither source has the prompt.
    """
    store_error: Exception | None = None
    try:
        stored = promptorium_load_prompt(prompt_key)
    except Exception as error:  # noqa: BLE001
        store_error = error
    else:
        if isinstance(stored, str):
            return stored
        store_error = PromptLoadError(
            f"Prompt {prompt_key!r} did not return text; got {type(stored).__name__}"
        )

    versions = bundled_prompt_versions(prompt_key)
    if not versions:
        raise PromptLoadError(f"Prompt not found: {prompt_key}") from store_error

    latest = versions[-1]
    logger.bind(prompt_key=prompt_key, path=str(latest)).debug(
        "Using bundled prompt {}", latest.name
    )
    return latest.read_text(encoding="utf-8")


def bundled_prompt_versions(prompt_key: str) -> list[Path]:
    """Bundled prompt files for ``prompt_key``, oldest version first."""
    numbered: list[tuple[int, Path]] = []
    for path in (_BUNDLED_ROOT / prompt_key).glob(f"{prompt_key}-*.md"):
        match = _VERSION_SUFFIX.fullmatch(path.name[len(prompt_key) :])
        if match:
            numbered.append((int(match.group("version")), path))
    return [path for _, path in sorted(numbered)]


def render_prompt(template: str, values: dict[str, str]) -> str:
    """Fill ``{{NAME}}`` placeholders from ``values``.

    Raises:
        PromptLoadError: If the template uses a placeholder with no value.
    """
    missing = sorted(
        {m.group("name") for m in _PLACEHOLDER.finditer(template)} - set(values)
    )
    if missing:
        raise PromptLoadError(
            f"No value for prompt placeholder(s): {', '.join(missing)}"
        )
    return _PLACEHOLDER.sub(lambda m: values[m.group("name")], template)
