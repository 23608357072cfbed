"""
Type annotations attached to declarations and expressions.

Type checking happens before the encoder runs; these objects only carry
the result of that classification.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TypeCategory(Enum):
    """Coarse classification of a program type."""
    BOOL = "bool"
    INTEGER = "integer"
    ADDRESS = "address"
    MAPPING = "mapping"
    ARRAY = "array"


@dataclass(frozen=True)
class SolType:
    """A resolved program type.

    Attributes:
        category: Kind of the type
        bits: Bit width for integers and addresses
        signed: Whether an integer type is signed
        key_type: Key type of a mapping
        value_type: Value type of a mapping or element type of an array
    """
    category: TypeCategory
    bits: int = 256
    signed: bool = False
    key_type: Optional["SolType"] = None
    value_type: Optional["SolType"] = None

    @property
    def is_integer(self) -> bool:
        return self.category in (TypeCategory.INTEGER, TypeCategory.ADDRESS)

    @property
    def is_bool(self) -> bool:
        return self.category == TypeCategory.BOOL

    @property
    def has_reference_or_mapping_type(self) -> bool:
        return self.category in (TypeCategory.MAPPING, TypeCategory.ARRAY)

    def __str__(self) -> str:
        if self.category == TypeCategory.BOOL:
            return "bool"
        if self.category == TypeCategory.ADDRESS:
            return "address"
        if self.category == TypeCategory.INTEGER:
            return f"{'int' if self.signed else 'uint'}{self.bits}"
        if self.category == TypeCategory.MAPPING:
            return f"mapping({self.key_type} => {self.value_type})"
        return f"{self.value_type}[]"


def bool_type() -> SolType:
    return SolType(TypeCategory.BOOL, bits=1)


def uint_type(bits: int = 256) -> SolType:
    return SolType(TypeCategory.INTEGER, bits=bits, signed=False)


def int_type(bits: int = 256) -> SolType:
    return SolType(TypeCategory.INTEGER, bits=bits, signed=True)


def address_type() -> SolType:
    return SolType(TypeCategory.ADDRESS, bits=160, signed=False)


def mapping_type(key: SolType, value: SolType) -> SolType:
    return SolType(TypeCategory.MAPPING, key_type=key, value_type=value)


def array_type(element: SolType) -> SolType:
    return SolType(TypeCategory.ARRAY, key_type=uint_type(), value_type=element)
