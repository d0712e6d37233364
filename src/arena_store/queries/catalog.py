"""
Immutable catalog of parameterized SQL statements.

All statement text lives in a YAML definition file (the packaged
queries.yaml by default). The catalog is loaded once and never mutated;
repositories look statements up by name and bind caller values through
psycopg named placeholders, so caller input never becomes SQL text.

Usage:
    from arena_store.queries import get_catalog

    catalog = get_catalog()
    template = catalog.get("presence.character_online")
    params = template.bind({"charid": 7, "tableid": 1, "arenaid": 2,
                            "arenashortname": "A1"})
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

import yaml

from ..core.errors import CatalogError, MissingParameter, UnknownQuery

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "queries.yaml"

_NAMED_PARAM = re.compile(r"%\((\w+)\)s")
_POSITIONAL_PARAM = re.compile(r"(?<!%)%s")


@dataclass(frozen=True)
class Template:
    """A named SQL statement and the ordered names of its parameters."""

    name: str
    sql: str
    params: tuple[str, ...]

    @classmethod
    def parse(cls, name: str, sql: str) -> "Template":
        """Build a template, collecting parameters in first-occurrence order."""
        stripped = _NAMED_PARAM.sub("", sql).replace("%%", "")
        if _POSITIONAL_PARAM.search(stripped):
            raise CatalogError(
                f"Query {name!r} uses positional placeholders; use %(name)s"
            )
        params = tuple(dict.fromkeys(_NAMED_PARAM.findall(sql)))
        return cls(name=name, sql=sql.strip(), params=params)

    def bind(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """
        Select this template's parameters from `values`.

        Extra keys are ignored so a full record mapping can be passed to a
        statement that uses only part of it.

        Raises:
            MissingParameter: If a declared parameter is absent
        """
        missing = [p for p in self.params if p not in values]
        if missing:
            raise MissingParameter(self.name, missing)
        return {p: values[p] for p in self.params}


class QueryCatalog:
    """Read-only mapping of operation name to Template."""

    def __init__(self, templates: Mapping[str, Template]):
        self._templates = MappingProxyType(dict(templates))

    @classmethod
    def from_mapping(cls, definitions: Mapping[str, Any]) -> "QueryCatalog":
        """
        Build a catalog from (possibly nested) name -> SQL definitions.

        Nested groups are flattened with dots: {"presence": {"x": ...}}
        registers "presence.x".
        """
        templates: dict[str, Template] = {}
        for name, sql in _flatten(definitions):
            if not isinstance(sql, str) or not sql.strip():
                raise CatalogError(f"Query {name!r} has no statement text")
            templates[name] = Template.parse(name, sql)
        return cls(templates)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "QueryCatalog":
        """Load a catalog from a YAML file (defaults to the packaged one)."""
        path = Path(path) if path else DEFAULT_CATALOG_PATH
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise CatalogError(f"Query catalog {path} must be a mapping")
        catalog = cls.from_mapping(data)
        logger.info("Loaded %d queries from %s", len(catalog), path)
        return catalog

    def get(self, name: str) -> Template:
        """
        Look up a template by name.

        Raises:
            UnknownQuery: If no template has that name
        """
        try:
            return self._templates[name]
        except KeyError:
            raise UnknownQuery(name) from None

    def names(self) -> list[str]:
        return sorted(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[str]:
        return iter(self._templates)


def _flatten(
    definitions: Mapping[str, Any], prefix: str = ""
) -> Iterator[tuple[str, Any]]:
    for key, value in definitions.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _flatten(value, f"{name}.")
        else:
            yield name, value


@lru_cache
def get_catalog() -> QueryCatalog:
    """Get the process-wide catalog loaded from the packaged definitions."""
    return QueryCatalog.load()
