"""laminat.jsonifier.

Write pacts to pact files.

Pacts sharing a consumer and provider are merged into one file, written by
pact-python as ``<consumer>-<provider>.json``. Merging keeps the first
occurrence of each interaction (identified by description and provider state
names); an identical repeat is dropped, a differing one is an error.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pact import Pact

from .config import (
    DEFAULT_SPEC_VERSION,
    LaminatSettings,
    check_spec_version,
    pact_specification,
)
from .errors import raise_invalid_pact
from .model import RequestResponseInteraction, RequestResponsePact

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def pact_file_name(consumer: str, provider: str) -> str:
    """Return the file name pact-python writes for `consumer` and `provider`."""
    return f"{consumer}-{provider}.json"


def render_pact(
    pact: RequestResponsePact, spec_version: str = DEFAULT_SPEC_VERSION
) -> Pact:
    """
    Replay the interactions of `pact` onto a pact-python `Pact`.

    Args:
        pact: Recorded pact.
        spec_version: Pact file format, e.g. ``"3.0.0"``.

    Returns:
        The populated `pact.Pact`, ready for `write_file` or `serve`.
    """
    rendered = Pact(pact.consumer, pact.provider).with_specification(
        pact_specification(spec_version)
    )
    for interaction in pact.interactions:
        _render_interaction(rendered, interaction)
    return rendered


def _render_interaction(rendered: Pact, interaction: RequestResponseInteraction) -> None:
    http = rendered.upon_receiving(interaction.description)
    for state in interaction.provider_states:
        if state.params:
            http.given(state.name, state.parameters)
        else:
            http.given(state.name)

    request = interaction.request
    http.with_request(request.method, request.path)
    for name, value in request.query:
        http.with_query_parameter(name, value)
    for name, value in request.headers:
        http.with_header(name, value)
    if request.body is not None:
        http.with_body(request.body, content_type=request.content_type)

    response = interaction.response
    http.will_respond_with(response.status)
    for name, value in response.headers:
        http.with_header(name, value)
    if response.body is not None:
        http.with_body(response.body, content_type=response.content_type)


def merge_pacts(pacts: Iterable[RequestResponsePact]) -> list[RequestResponsePact]:
    """
    Merge pacts by consumer and provider.

    Args:
        pacts: Pacts to merge, in any order.

    Returns:
        One pact per (consumer, provider) pair, in first-seen order.

    Raises:
        ValueError: If two different interactions share description and states.
    """
    grouped: dict[tuple[str, str], dict[tuple, RequestResponseInteraction]] = {}
    for pact in pacts:
        interactions = grouped.setdefault((pact.consumer, pact.provider), {})
        for interaction in pact.interactions:
            key = interaction.unique_key()
            existing = interactions.get(key)
            if existing is None:
                interactions[key] = interaction
            elif existing != interaction:
                raise_invalid_pact(
                    detail=(
                        f"conflicting interactions {interaction.description!r} "
                        f"(state: {interaction.display_state()}) between "
                        f"{pact.consumer} and {pact.provider}"
                    )
                )

    return [
        RequestResponsePact(
            provider=provider,
            consumer=consumer,
            interactions=tuple(interactions.values()),
        )
        for (consumer, provider), interactions in grouped.items()
    ]


def generate_json(
    pacts: Iterable[RequestResponsePact],
    directory: str | Path | None = None,
    spec_version: str | None = None,
) -> list[Path]:
    """
    Write `pacts` as pact files.

    Existing files for the same consumer and provider are replaced.

    Args:
        pacts: Pacts to write.
        directory: Target directory; defaults to LAMINAT_PACT_DIR.
        spec_version: Pact file format; defaults to LAMINAT_PACT_SPEC_VERSION.

    Returns:
        Paths of the written files.
    """
    if directory is None or spec_version is None:
        settings = LaminatSettings.from_env()
        if directory is None:
            directory = settings.pact_dir
        if spec_version is None:
            spec_version = settings.spec_version
    spec_version = check_spec_version(spec_version)

    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for merged in merge_pacts(pacts):
        render_pact(merged, spec_version).write_file(target, overwrite=True)
        path = target / pact_file_name(merged.consumer, merged.provider)
        logger.info(
            "Wrote pact %s with %d interaction(s)", path, len(merged.interactions)
        )
        written.append(path)
    return written
