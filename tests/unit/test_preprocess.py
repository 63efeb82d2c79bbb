"""Tests for constituent data pre-processing."""

from form_automation.filling.preprocess import get_state_name, preprocess_data, state_aliases


class TestPreprocessData:
    """Tests for preprocess_data."""

    def test_normalises_copy(self, constituent):
        """Test state, phone and ZIP are normalised on a copy."""
        processed = preprocess_data(constituent)

        assert processed.state == "Nevada"
        assert processed.phone == "7755550100"
        assert processed.zip == "89501"
        assert constituent.state == "NV"
        assert constituent.phone == "(775) 555-0100"
        assert constituent.zip == "89501-1234"

    def test_full_state_name_kept(self, constituent):
        processed = preprocess_data(constituent.model_copy(update={"state": "Ohio"}))

        assert processed.state == "Ohio"

    def test_international_phone_keeps_plus(self, constituent):
        processed = preprocess_data(constituent.model_copy(update={"phone": "+1 775.555.0100"}))

        assert processed.phone == "+17755550100"

    def test_missing_phone(self, constituent):
        processed = preprocess_data(constituent.model_copy(update={"phone": None}))

        assert processed.phone is None


class TestStates:
    """Tests for state name helpers."""

    def test_get_state_name(self):
        assert get_state_name("nv") == "Nevada"
        assert get_state_name("DC") == "District of Columbia"
        assert get_state_name("XX") == "XX"

    def test_state_aliases(self):
        assert state_aliases("Nevada") == ["Nevada", "NV"]
        assert state_aliases("NV") == ["NV", "Nevada"]
        assert state_aliases("Atlantis") == ["Atlantis"]
