"""Tests for the representative directory."""

import pytest

from form_automation.directory import LegislatorDirectory

LEGISLATORS_YAML = """
- id:
    bioguide: A000369
  name:
    first: Mark
    last: Amodei
    official_full: Mark E. Amodei
  terms:
    - type: rep
      url: https://amodei.house.gov
      contact_form: https://amodei.house.gov/old-contact
    - type: rep
      url: https://amodei.house.gov
      contact_form: https://amodei.house.gov/contact
    - type: rep
      url: https://amodei.house.gov
- id:
    bioguide: C001113
  name:
    first: Catherine
    last: Cortez Masto
  terms:
    - type: sen
      url: https://www.cortezmasto.senate.gov
      contact_form: https://www.cortezmasto.senate.gov/contact
- id:
    bioguide: N000000
  name:
    first: No
    last: Form
  terms:
    - type: rep
      url: https://noform.house.gov
"""


@pytest.fixture
def directory(tmp_path):
    path = tmp_path / "legislators-current.yaml"
    path.write_text(LEGISLATORS_YAML, encoding="utf-8")
    return LegislatorDirectory(path)


class TestLegislatorDirectory:
    """Tests for LegislatorDirectory."""

    def test_lookup_uses_latest_term_with_form(self, directory):
        info = directory.lookup("A000369")

        assert info.name == "Mark E. Amodei"
        assert info.contact_form_url == "https://amodei.house.gov/contact"
        assert info.website == "https://amodei.house.gov"

    def test_name_falls_back_to_first_last(self, directory):
        assert directory.lookup("C001113").name == "Catherine Cortez Masto"

    def test_lookup_without_form(self, directory):
        assert directory.lookup("N000000") is None

    def test_lookup_unknown(self, directory):
        assert directory.lookup("Z999999") is None

    def test_find_with_forms(self, directory):
        assert [r.bioguide_id for r in directory.find_with_forms()] == ["A000369", "C001113"]

    def test_missing_file(self, tmp_path):
        directory = LegislatorDirectory(tmp_path / "missing.yaml")

        assert directory.lookup("A000369") is None
        assert directory.find_with_forms() == []
