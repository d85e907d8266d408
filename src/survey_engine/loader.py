"""Definition loading — transports plus the loader that holds the schema.

Usage::

    loader = DefinitionLoader(FileTransport())
    definition = await loader.load("surveys/onboarding.json")
    loader.definition.steps[0].questions

Transports:
  - :class:`FileTransport` reads a local ``.json`` / ``.yaml`` / ``.yml`` file
  - :class:`HttpTransport` fetches a URL with ``httpx``

The payload must be an object holding a ``steps`` array; each step's
``questions``, if present, must be an array.  Anything else is reported
as ``LoadError(MALFORMED)``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from survey_engine.constants import HTTP_TIMEOUT_SECONDS
from survey_engine.errors import LoadError, LoadErrorReason
from survey_engine.evaluator import find_unknown_references
from survey_engine.interfaces import DefinitionTransport
from survey_engine.models.definition import SurveyDefinition

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def load_document(path: Path | str) -> Any:
    """Load a single JSON or YAML file and return the parsed contents.

    Raises:
        LoadError: NOT_FOUND if the path is not a regular file, MALFORMED if
            it is not UTF-8 or does not parse, TRANSPORT_FAILURE if reading
            fails.
    """
    if isinstance(path, str):
        path = Path(path)
    if not path.is_file():
        raise LoadError(LoadErrorReason.NOT_FOUND, f"Missing survey file: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as exc:
        raise LoadError(LoadErrorReason.MALFORMED, f"Survey file is not UTF-8: {path}") from exc
    except OSError as exc:
        raise LoadError(
            LoadErrorReason.TRANSPORT_FAILURE, f"Cannot read survey file {path}: {exc}",
        ) from exc
    return parse_document(text, yaml_ok=path.suffix.lower() in (".yaml", ".yml"))


def parse_document(text: str, *, yaml_ok: bool = False) -> Any:
    """Parse a JSON (or, with ``yaml_ok``, YAML) document."""
    try:
        if yaml_ok:
            return yaml.safe_load(text)
        return json.loads(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise LoadError(LoadErrorReason.MALFORMED, f"Unparseable survey document: {exc}") from exc


def parse_definition(raw: Any) -> SurveyDefinition:
    """Validate a parsed document into a :class:`SurveyDefinition`.

    Raises:
        LoadError: MALFORMED if the shape is wrong.
    """
    if not isinstance(raw, dict):
        raise LoadError(
            LoadErrorReason.MALFORMED,
            f"Survey definition must be an object, got {type(raw).__name__}",
        )
    if not isinstance(raw.get("steps"), list):
        raise LoadError(LoadErrorReason.MALFORMED, "Survey definition lacks a 'steps' array")
    for i, step in enumerate(raw["steps"]):
        if isinstance(step, dict) and "questions" in step and not isinstance(step["questions"], list):
            raise LoadError(
                LoadErrorReason.MALFORMED, f"Step {i} has a non-array 'questions' field",
            )
    try:
        definition = SurveyDefinition.model_validate(raw)
    except ValidationError as exc:
        raise LoadError(LoadErrorReason.MALFORMED, f"Invalid survey definition: {exc}") from exc

    for qid, ref in find_unknown_references(definition):
        logger.warning("Question %s has a condition on unknown question %s", qid, ref)
    return definition


# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------

class FileTransport(DefinitionTransport):
    """Reads definitions from the local filesystem.

    Relative sources are resolved against ``base_dir`` (default: cwd).
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base = Path(base_dir) if base_dir is not None else None

    async def fetch(self, source: str) -> Any:
        path = Path(source)
        if self._base is not None and not path.is_absolute():
            path = self._base / path
        return await asyncio.to_thread(load_document, path)


class HttpTransport(DefinitionTransport):
    """Fetches definitions over HTTP(S) with ``httpx``.

    Args:
        client: optional pre-configured ``httpx.AsyncClient`` (shared pools,
            custom auth, or ``httpx.MockTransport`` in tests).  When omitted
            a short-lived client is created per fetch.
        timeout: request timeout in seconds.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._timeout = timeout

    async def fetch(self, source: str) -> Any:
        try:
            if self._client is not None:
                resp = await self._client.get(source, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.get(source)
        except httpx.HTTPError as exc:
            raise LoadError(
                LoadErrorReason.TRANSPORT_FAILURE, f"Request for {source} failed: {exc}",
            ) from exc

        if resp.status_code == 404:
            raise LoadError(LoadErrorReason.NOT_FOUND, f"Survey definition not found: {source}")
        if not resp.is_success:
            raise LoadError(
                LoadErrorReason.TRANSPORT_FAILURE,
                f"Failed to load survey definition: {resp.status_code} {resp.reason_phrase}",
            )
        is_yaml = "yaml" in resp.headers.get("content-type", "") or source.endswith((".yaml", ".yml"))
        return parse_document(resp.text, yaml_ok=is_yaml)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class DefinitionLoader:
    """Fetches and holds the immutable survey schema for one session.

    A successful :meth:`load` replaces the held definition; a failed one
    leaves the previous definition in place.  Loading never triggers
    rendering.
    """

    def __init__(self, transport: DefinitionTransport | None = None) -> None:
        self._transport = transport or FileTransport()
        self._definition: SurveyDefinition | None = None

    @property
    def definition(self) -> SurveyDefinition | None:
        return self._definition

    @property
    def is_loaded(self) -> bool:
        return self._definition is not None

    async def load(self, source: str) -> SurveyDefinition:
        """Fetch, validate and hold the definition identified by ``source``.

        Raises:
            LoadError: on a missing resource, a malformed payload, or a
                transport failure.
        """
        raw = await self._transport.fetch(source)
        definition = parse_definition(raw)
        self._definition = definition
        logger.info(
            "Loaded survey %s (%r): %d steps, %d questions",
            definition.id, definition.title, len(definition.steps),
            sum(len(s.questions) for s in definition.steps),
        )
        return definition

    def load_definition(self, data: SurveyDefinition | dict) -> SurveyDefinition:
        """Hold an in-memory definition (already parsed dict or model)."""
        definition = data if isinstance(data, SurveyDefinition) else parse_definition(data)
        self._definition = definition
        return definition
