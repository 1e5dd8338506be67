"""Structured item kinds carried in completion payloads.

Each kind names the id field, the fields an item needs before it is worth
showing, and the minimum length of each of those fields.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..utils import MISSING, get_nested_value, set_nested_value

STREAMING_DATA_TYPES: Dict[str, Dict[str, Any]] = {
    "potential_causes": {
        "id_field": "cause_id",
        "required_fields": ["name_localized", "suggestion_localized", "explanation_localized"],
        "min_lengths": {"name_localized": 10, "suggestion_localized": 20, "explanation_localized": 30},
        "optional_fields": ["confidence", "tags"],
        "display_name": "Potential Cause",
    },
    "potential_symptoms": {
        "id_field": "symptom_id",
        "required_fields": ["name_localized", "suggestion_localized", "explanation_localized"],
        "min_lengths": {"name_localized": 5, "suggestion_localized": 10, "explanation_localized": 15},
        "optional_fields": [],
        "display_name": "Potential Symptom",
    },
    "therapeutic_properties": {
        "id_field": "property_id",
        "required_fields": ["property_name_localized", "description_contextual_localized"],
        "min_lengths": {"property_name_localized": 5, "description_contextual_localized": 15},
        "optional_fields": [
            "property_name_english",
            "relevancy_score",
            "addresses_cause_ids",
            "addresses_symptom_ids",
        ],
        "display_name": "Therapeutic Property",
    },
    "essential_oils": {
        "id_field": "oil_id",
        "required_fields": ["name_localized", "description_localized"],
        "min_lengths": {"name_localized": 3, "description_localized": 10},
        "optional_fields": ["relevancy", "properties"],
        "display_name": "Essential Oil",
    },
    "suggested_oils": {
        "id_field": "oil_id",
        "required_fields": ["name_english", "name_botanical", "name_localized", "match_rationale_localized"],
        "min_lengths": {
            "name_english": 3,
            "name_botanical": 5,
            "name_localized": 3,
            "match_rationale_localized": 10,
        },
        "optional_fields": ["relevancy_to_property_score"],
        "display_name": "Essential Oil",
    },
    "medical_properties": {
        "id_field": "property_id",
        "required_fields": ["property_name", "description"],
        "min_lengths": {"property_name": 5, "description": 15},
        "optional_fields": ["causes_addressed", "symptoms_addressed", "relevancy"],
        "display_name": "Medical Property",
    },
}


def get_data_type_config(data_type: str) -> Optional[Dict[str, Any]]:
    return STREAMING_DATA_TYPES.get(data_type)


def get_supported_data_types() -> List[str]:
    return list(STREAMING_DATA_TYPES.keys())


def is_item_complete(item: Any, config: Dict[str, Any]) -> bool:
    """True once every required field is a long-enough, non-truncated string."""
    if not isinstance(item, dict):
        return False

    id_value = get_nested_value(item, config["id_field"])
    if id_value is MISSING or not id_value:
        return False

    for field_name in config["required_fields"]:
        value = get_nested_value(item, field_name)
        if not isinstance(value, str) or not value:
            return False
        min_length = config["min_lengths"].get(field_name, 1)
        if len(value) < min_length or value.endswith("..."):
            return False
    return True


def clean_item_data(item: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """Keeps only the id, required and present optional fields of an item."""
    clean: Dict[str, Any] = {}

    id_value = get_nested_value(item, config["id_field"])
    set_nested_value(clean, config["id_field"], None if id_value is MISSING else id_value)

    for field_name in config["required_fields"]:
        value = get_nested_value(item, field_name)
        if value is MISSING:
            value = None
        if isinstance(value, str):
            value = value.strip()
        set_nested_value(clean, field_name, value)

    for field_name in config["optional_fields"]:
        value = get_nested_value(item, field_name)
        if value is not MISSING and value is not None:
            set_nested_value(clean, field_name, value)
    return clean


def _find_items(payload: Any, data_type: str) -> Optional[List[Any]]:
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        return None
    data = payload["data"]
    if data_type == "suggested_oils":
        # Suggested oils arrive nested under the property they belong to.
        suggestion = data.get("property_oil_suggestion")
        if isinstance(suggestion, dict) and suggestion.get("suggested_oils"):
            oils = suggestion["suggested_oils"]
            return oils if isinstance(oils, list) else [oils]
    items = data.get(data_type)
    return items if isinstance(items, list) else None


def extract_items(payload: Any, data_type: str) -> List[Any]:
    """Finds the item list for ``data_type`` in a ``{"data": {...}}`` payload."""
    return _find_items(payload, data_type) or []


def detect_data_types(payload: Any) -> List[str]:
    return [data_type for data_type in STREAMING_DATA_TYPES if _find_items(payload, data_type) is not None]


def complete_items(payload: Any) -> Dict[str, List[Dict[str, Any]]]:
    """Cleaned, complete items per detected data type."""
    result: Dict[str, List[Dict[str, Any]]] = {}
    for data_type in detect_data_types(payload):
        config = STREAMING_DATA_TYPES[data_type]
        items = [clean_item_data(item, config) for item in extract_items(payload, data_type)
                 if is_item_complete(item, config)]
        if items:
            result[data_type] = items
    return result
