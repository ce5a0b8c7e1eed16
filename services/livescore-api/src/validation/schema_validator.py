"""
Schema Validator — Validates provider payloads at the client boundary.

Envelopes that fail validation are rejected outright; fixture items that
fail are dropped from their batch so one bad record never sinks a listing.
Uses JSON Schema Draft 2020-12.
"""

import json
import structlog
from pathlib import Path
from dataclasses import dataclass, field
from typing import Iterable, Optional

from jsonschema import Draft202012Validator

from ..metrics import FIXTURES_DROPPED
from ..models import RawFixture

logger = structlog.get_logger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schemas"

ENVELOPE = "ENVELOPE"
FIXTURE = "FIXTURE"


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    kind: Optional[str] = None


class SchemaValidator:
    """
    Validates payloads against their corresponding JSON schema.
    Schemas are loaded from disk once and cached in memory.
    """

    def __init__(self, schema_dir: Path = SCHEMA_DIR):
        self.schema_dir = Path(schema_dir)
        self._validators: dict[str, Draft202012Validator] = {}
        self._load_schemas()

    def _load_schemas(self):
        """Load all payload schemas from the schema directory."""
        if not self.schema_dir.exists():
            raise FileNotFoundError(f"Schema directory not found: {self.schema_dir}")

        for schema_file in sorted(self.schema_dir.glob("*.json")):
            with open(schema_file) as f:
                schema = json.load(f)

            Draft202012Validator.check_schema(schema)
            kind = self._title_to_kind(schema.get("title", ""))
            if kind:
                self._validators[kind] = Draft202012Validator(schema)
                logger.debug("schema_loaded", kind=kind, file=schema_file.name)

        for kind in (ENVELOPE, FIXTURE):
            if kind not in self._validators:
                raise ValueError(f"Missing schema for {kind} in {self.schema_dir}")

    def validate(self, kind: str, payload) -> ValidationResult:
        """
        Validate a payload against the schema registered for `kind`.
        Returns ValidationResult with is_valid and any errors.
        """
        validator = self._validators[kind]
        errors = [
            f"{error.json_path}: {error.message}"
            for error in validator.iter_errors(payload)
        ]
        return ValidationResult(is_valid=not errors, errors=errors, kind=kind)

    def parse_fixtures(self, items: Iterable, source: str = "") -> list[RawFixture]:
        """
        Turn provider fixture items into RawFixture records, skipping any
        item missing league, team or fixture data.
        """
        fixtures = []
        for index, item in enumerate(items):
            result = self.validate(FIXTURE, item)
            if not result.is_valid:
                self._drop(index, source, result.errors[0])
                continue
            try:
                fixtures.append(RawFixture.from_payload(item))
            except (KeyError, TypeError, ValueError) as e:
                self._drop(index, source, str(e))
        return fixtures

    def _drop(self, index: int, source: str, reason: str):
        FIXTURES_DROPPED.inc()
        logger.debug(
            "fixture_skipped",
            index=index,
            source=source,
            reason=reason,
        )

    def _title_to_kind(self, title: str) -> Optional[str]:
        """Map schema title to payload kind constant."""
        mapping = {
            "Envelope": ENVELOPE,
            "Fixture": FIXTURE,
        }
        return mapping.get(title)
