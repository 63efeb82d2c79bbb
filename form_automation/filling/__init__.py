"""Field Mapper / Filler: constituent data -> form controls."""

from form_automation.filling.filler import FormFiller
from form_automation.filling.mapper import infer_data_type, resolve_value
from form_automation.filling.matching import find_best_option_match, find_best_option_match_any
from form_automation.filling.preprocess import get_state_name, preprocess_data

__all__ = [
    "FormFiller",
    "find_best_option_match",
    "find_best_option_match_any",
    "get_state_name",
    "infer_data_type",
    "preprocess_data",
    "resolve_value",
]
