"""Setting types, the value-holding Setting record and text conversion.

Values are stored as plain Python scalars. The declared ``SettingType`` is the
tag that decides which scalar is legal, so a Setting can never hold a value
its type does not accept.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .errors import ConversionError, UnknownTypeError

Value = Union[int, float, bool, str]

TRUTHY = frozenset({"true", "on", "yes"})
FALSY = frozenset({"false", "off", "no"})


class SettingType(Enum):
    """Declared type of a setting.

    Attributes:
        NUMBER: Integer or floating point number.
        BOOLEAN: True/False flag.
        STRING: Free text.
    """

    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"

    @classmethod
    def parse(cls, tag: Union["SettingType", str]) -> "SettingType":
        """Return the SettingType for an enum member or its string tag.

        Raises:
            UnknownTypeError: If the tag is not one of the supported types.
        """
        if isinstance(tag, cls):
            return tag
        try:
            return cls(tag)
        except ValueError:
            raise UnknownTypeError(tag) from None

    def accepts(self, value: Any) -> bool:
        """Check whether a Python value is legal for this type."""
        if self is SettingType.BOOLEAN:
            return isinstance(value, bool)
        if self is SettingType.NUMBER:
            # bool is an int subclass, but True is not a number setting
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        return isinstance(value, str)

    def check(self, value: Any) -> Any:
        """Return value unchanged if legal, raise ConversionError otherwise."""
        if not self.accepts(value):
            raise ConversionError(
                value, self.value, f"expected {self.value}, got {type(value).__name__}"
            )
        return value


def convert(raw: str, declared_type: Union[SettingType, str]) -> Value:
    """Convert untyped text into a value of the declared type.

    Args:
        raw: Text as typed by a user.
        declared_type: The setting's type, as enum member or tag.

    Returns:
        The converted value.

    Raises:
        ConversionError: If the text is not a valid literal for the type.
        UnknownTypeError: If the declared type is not supported.
    """
    typ = SettingType.parse(declared_type)

    if typ is SettingType.NUMBER:
        return _convert_number(raw)
    if typ is SettingType.BOOLEAN:
        if raw in TRUTHY:
            return True
        if raw in FALSY:
            return False
        raise ConversionError(raw, typ.value)
    return raw


def _convert_number(raw: str) -> Union[int, float]:
    # int() and float() accept digit separators; plain numerals only
    if not isinstance(raw, str) or "_" in raw:
        raise ConversionError(raw, SettingType.NUMBER.value)
    text = raw.strip()
    unsigned = text.lstrip("+-")
    if unsigned[:2] in ("0x", "0X") and len(text) - len(unsigned) <= 1:
        try:
            return int(text, 16)
        except ValueError:
            raise ConversionError(raw, SettingType.NUMBER.value) from None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        raise ConversionError(raw, SettingType.NUMBER.value) from None
    if not math.isfinite(number):
        raise ConversionError(raw, SettingType.NUMBER.value, "not a finite number")
    return number


@dataclass
class Setting:
    """One named configuration slot.

    Attributes:
        name: Unique key in the registry's flat namespace.
        type: Declared type, fixed at first registration.
        default: Fallback value supplied by the registering component, or None.
        current: User override, or None when never overridden.
    """

    name: str
    type: SettingType
    default: Optional[Value] = None
    current: Optional[Value] = None

    def __post_init__(self):
        """Normalize the type tag and validate both values against it."""
        self.type = SettingType.parse(self.type)
        if self.default is not None:
            self.type.check(self.default)
        if self.current is not None:
            self.type.check(self.current)

    @property
    def value(self) -> Optional[Value]:
        """Effective value: the override if present, else the default."""
        if self.current is None:
            return self.default
        return self.current

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted ``{type, default, current}`` form."""
        return {
            "type": self.type.value,
            "default": self.default,
            "current": self.current,
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "Setting":
        """Build a Setting from its persisted form.

        Raises:
            UnknownTypeError: If the stored type tag is not supported.
            ConversionError: If a stored value does not match the type.
        """
        return cls(
            name=name,
            type=SettingType.parse(data.get("type")),
            default=data.get("default"),
            current=data.get("current"),
        )
