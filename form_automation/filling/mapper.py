"""Maps constituent data onto perceived form fields."""

from collections.abc import Callable
from dataclasses import dataclass

from form_automation.models import ConstituentData, DataType, FormField

ValueGetter = Callable[[ConstituentData], str | None]


DATA_TYPE_VALUES: dict[DataType, ValueGetter] = {
    DataType.FIRST_NAME: lambda d: d.first_name,
    DataType.LAST_NAME: lambda d: d.last_name,
    DataType.FULL_NAME: lambda d: d.full_name,
    DataType.EMAIL: lambda d: d.email,
    DataType.PHONE: lambda d: d.phone or None,
    DataType.STREET: lambda d: d.street,
    DataType.CITY: lambda d: d.city,
    DataType.STATE: lambda d: d.state,
    DataType.ZIP: lambda d: d.zip,
    DataType.TOPIC: lambda d: d.topic,
    DataType.SUBJECT: lambda d: d.subject,
    DataType.MESSAGE: lambda d: d.message,
    DataType.PREFIX: lambda d: d.prefix or None,
}


@dataclass(frozen=True)
class KeywordRule:
    """Infers a field's meaning from its lowercased label and name attribute."""

    data_type: DataType
    matches: Callable[[str, str], bool]


def _any_in(text: str, *words: str) -> bool:
    return any(word in text for word in words)


# Order matters: compound terms ("first" + "name") must be tested before the
# bare "name" rule, or a first-name field would get the full name.
KEYWORD_RULES: list[KeywordRule] = [
    KeywordRule(
        DataType.FIRST_NAME,
        lambda label, name: ("first" in label and "name" in label) or "first" in name,
    ),
    KeywordRule(
        DataType.LAST_NAME,
        lambda label, name: ("last" in label and "name" in label) or "last" in name,
    ),
    KeywordRule(
        DataType.FULL_NAME,
        lambda label, name: ("name" in label and not _any_in(label, "first", "last"))
        or name in ("name", "fullname", "full_name"),
    ),
    KeywordRule(DataType.EMAIL, lambda label, name: "email" in label or "email" in name),
    KeywordRule(DataType.PHONE, lambda label, name: _any_in(label, "phone", "tel") or "phone" in name),
    KeywordRule(
        DataType.STREET,
        lambda label, name: "street" in label
        or ("address" in label and "city" not in label)
        or _any_in(name, "street", "address"),
    ),
    KeywordRule(DataType.CITY, lambda label, name: "city" in label or "city" in name),
    KeywordRule(DataType.STATE, lambda label, name: "state" in label or "state" in name),
    KeywordRule(DataType.ZIP, lambda label, name: _any_in(label, "zip", "postal") or "zip" in name),
    KeywordRule(DataType.TOPIC, lambda label, name: _any_in(label, "topic", "issue") or _any_in(name, "topic", "issue")),
    KeywordRule(DataType.SUBJECT, lambda label, name: "subject" in label or "subject" in name),
    KeywordRule(
        DataType.MESSAGE,
        lambda label, name: _any_in(label, "message", "comment") or _any_in(name, "message", "comment"),
    ),
    KeywordRule(
        DataType.PREFIX,
        lambda label, name: _any_in(label, "prefix", "title", "salutation") or "prefix" in name,
    ),
]


def infer_data_type(field: FormField) -> DataType:
    """Semantic kind of a field: its perceived data type, else keyword inference."""
    if field.data_type != DataType.OTHER:
        return field.data_type

    label = field.label.lower()
    name = (field.name or "").lower()
    for rule in KEYWORD_RULES:
        if rule.matches(label, name):
            return rule.data_type
    return DataType.OTHER


def resolve_value(field: FormField, data: ConstituentData) -> str | None:
    """Value to inject into ``field``, or None if nothing in ``data`` fits."""
    getter = DATA_TYPE_VALUES.get(infer_data_type(field))
    if getter is None:
        return None
    return getter(data)
