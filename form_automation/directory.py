"""Representative directory backed by the unitedstates legislators YAML file."""

import logging
from pathlib import Path
from typing import Any

import yaml

from form_automation.config import get_settings
from form_automation.models import RepresentativeInfo

logger = logging.getLogger(__name__)


def _display_name(name: dict[str, Any]) -> str:
    return name.get("official_full") or f"{name.get('first', '')} {name.get('last', '')}".strip()


def _to_info(legislator: dict[str, Any]) -> RepresentativeInfo | None:
    """Latest term with a contact form, as a ``RepresentativeInfo``."""
    for term in reversed(legislator.get("terms") or []):
        if term.get("contact_form"):
            return RepresentativeInfo(
                bioguide_id=legislator["id"]["bioguide"],
                name=_display_name(legislator.get("name") or {}),
                contact_form_url=term["contact_form"],
                website=term.get("url"),
            )
    return None


class LegislatorDirectory:
    """Looks up contact form URLs by bioguide ID.

    The file is parsed lazily on first use and cached for the lifetime of the
    instance. A missing file behaves as an empty directory.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or get_settings().legislators_file)
        self._legislators: list[dict[str, Any]] | None = None

    def _load(self) -> list[dict[str, Any]]:
        if self._legislators is None:
            if not self.path.exists():
                logger.error(f"Legislators file not found: {self.path}")
                self._legislators = []
            else:
                with self.path.open(encoding="utf-8") as f:
                    self._legislators = yaml.safe_load(f) or []
                logger.info(f"Loaded {len(self._legislators)} legislators from {self.path}")
        return self._legislators

    def lookup(self, bioguide_id: str) -> RepresentativeInfo | None:
        """Contact form info for one legislator, or None if unknown or formless."""
        for legislator in self._load():
            if (legislator.get("id") or {}).get("bioguide") == bioguide_id:
                return _to_info(legislator)
        return None

    def find_with_forms(self) -> list[RepresentativeInfo]:
        """Every legislator with a contact form, in file order."""
        results = []
        for legislator in self._load():
            if not (legislator.get("id") or {}).get("bioguide"):
                continue
            info = _to_info(legislator)
            if info is not None:
                results.append(info)
        return results
