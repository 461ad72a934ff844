"""Smali language model: documents, declarations and the declaration parser."""

from smalise.language.document import TextDocument
from smalise.language.parser import (
    find_class_name,
    find_field_definition,
    find_field_reference,
    find_method_definition,
    find_method_reference,
    find_type,
    parse_smali_document,
)
from smalise.language.structs import Class, Field, Method, Name, Type, qualified

__all__ = [
    "TextDocument",
    "Class",
    "Field",
    "Method",
    "Name",
    "Type",
    "qualified",
    "parse_smali_document",
    "find_class_name",
    "find_type",
    "find_field_definition",
    "find_method_definition",
    "find_field_reference",
    "find_method_reference",
]
