"""Line-oriented smali declaration parser and position lookups.

Only declarations are parsed: ``.class``, ``.super``, ``.implements``,
``.field`` and ``.method`` headers. Method bodies are skipped apart from
checking that every ``.method`` is closed by ``.end method``.

The ``find_*`` helpers look at the single line under the cursor. String
literal contents and ``#`` comments are blanked out first (offsets preserved),
so descriptors mentioned inside strings or comments are never matched.
"""

from __future__ import annotations

import re

from lsprotocol import types as lsp

from smalise.core.errors import ParseError
from smalise.language.document import TextDocument
from smalise.language.structs import Class, Field, Method, Name, Type

_CLASS_DESC = r"L[^\s;:()\"]+;"
_TYPE_DESC = rf"\[*(?:{_CLASS_DESC}|[VZBSCIJFD])"
_MODIFIERS = r"(?P<mods>(?:[a-z][a-z-]*\s+)*)"

CLASS_DESCRIPTOR_RE = re.compile(_CLASS_DESC)
TYPE_DESCRIPTOR_RE = re.compile(_TYPE_DESC)

_CLASS_RE = re.compile(rf"^\s*\.class\s+{_MODIFIERS}(?P<type>\S+)\s*$")
_SUPER_RE = re.compile(r"^\s*\.super\s+(?P<type>\S+)\s*$")
_IMPLEMENTS_RE = re.compile(r"^\s*\.implements\s+(?P<type>\S+)\s*$")
_FIELD_RE = re.compile(
    rf"^\s*\.field\s+{_MODIFIERS}(?P<name>[^\s:]+):(?P<type>[^\s=]+)\s*(?:=.*)?$"
)
_METHOD_RE = re.compile(
    rf"^\s*\.method\s+{_MODIFIERS}(?P<name>[^\s(]+)\((?P<params>[^)]*)\)(?P<ret>\S+)\s*$"
)
_FIELD_REF_RE = re.compile(
    rf"(?P<owner>\[*{_CLASS_DESC})->(?P<name>[^\s:(]+):(?P<type>{_TYPE_DESC})"
)
_METHOD_REF_RE = re.compile(
    rf"(?P<owner>\[*{_CLASS_DESC})->(?P<name>[^\s:(]+)"
    rf"\((?P<params>[^)]*)\)(?P<ret>{_TYPE_DESC})"
)


def mask_line(line: str) -> str:
    """Blank string literal contents and comments, keeping every offset."""
    chars = list(line)
    in_string = False
    escaped = False
    for i, ch in enumerate(line):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
                continue
            chars[i] = " "
        elif ch == '"':
            in_string = True
        elif ch == "#":
            return "".join(chars[:i]) + " " * (len(line) - i)
    return "".join(chars)


def _range(line: int, start: int, end: int) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=line, character=start),
        end=lsp.Position(line=line, character=end),
    )


def _name(match: re.Match[str], group: str, line: int) -> Name:
    return Name(text=match.group(group), range=_range(line, match.start(group), match.end(group)))


def _type(match: re.Match[str], group: str, line: int) -> Type:
    text = match.group(group)
    if not TYPE_DESCRIPTOR_RE.fullmatch(text):
        raise ParseError.malformed(
            f"Invalid type descriptor '{text}'", line, match.start(group), match.end(group)
        )
    return Type(text=text, range=_range(line, match.start(group), match.end(group)))


def _class_type(match: re.Match[str], group: str, line: int) -> Type:
    text = match.group(group)
    if not CLASS_DESCRIPTOR_RE.fullmatch(text):
        raise ParseError.malformed(
            f"Invalid class descriptor '{text}'", line, match.start(group), match.end(group)
        )
    return Type(text=text, range=_range(line, match.start(group), match.end(group)))


def _type_list(match: re.Match[str], group: str, line: int) -> list[Type]:
    text = match.group(group)
    column = match.start(group)
    types: list[Type] = []
    pos = 0
    while pos < len(text):
        m = TYPE_DESCRIPTOR_RE.match(text, pos)
        if m is None:
            raise ParseError.malformed(
                f"Invalid parameter list '{text}'", line, column + pos, column + len(text)
            )
        types.append(Type(text=m.group(), range=_range(line, column + m.start(), column + m.end())))
        pos = m.end()
    return types


def _modifiers(match: re.Match[str]) -> list[str]:
    return (match.groupdict().get("mods") or "").split()


def _field(match: re.Match[str], line: int) -> Field:
    return Field(
        name=_name(match, "name", line),
        type=_type(match, "type", line),
        modifiers=_modifiers(match),
    )


def _method(match: re.Match[str], line: int) -> Method:
    return Method(
        name=_name(match, "name", line),
        parameters=_type_list(match, "params", line),
        return_type=_type(match, "ret", line),
        modifiers=_modifiers(match),
    )


def _malformed(directive: str, line: int, text: str) -> ParseError:
    return ParseError.malformed(f"Malformed {directive} directive", line, 0, len(text))


def parse_smali_document(document: TextDocument) -> Class:
    """Parse the declarations of one smali class.

    Raises:
        ParseError: Missing or duplicate ``.class``, malformed declaration
            headers, or unbalanced ``.method``/``.end method`` blocks.
    """
    name: Type | None = None
    super_class: Type | None = None
    interfaces: list[Type] = []
    fields: list[Field] = []
    methods: list[Method] = []
    constructors: list[Method] = []
    open_method: int | None = None

    for line_no, raw in enumerate(document.lines()):
        line = mask_line(raw)
        words = line.split()
        if not words or not words[0].startswith("."):
            continue
        directive = words[0]

        if directive == ".end" and words[1:2] == ["method"]:
            if open_method is None:
                raise ParseError.malformed(
                    ".end method without matching .method", line_no, 0, len(line.rstrip())
                )
            open_method = None
            continue

        if open_method is not None:
            if directive in (".method", ".class", ".field"):
                raise ParseError.malformed(
                    f"Unexpected {directive} inside a method body", line_no, 0, len(line.rstrip())
                )
            continue

        if directive == ".class":
            if name is not None:
                raise ParseError.malformed(
                    "Duplicate .class directive", line_no, 0, len(line.rstrip())
                )
            m = _CLASS_RE.match(line)
            if m is None:
                raise _malformed(directive, line_no, line.rstrip())
            name = _class_type(m, "type", line_no)
        elif directive in (".super", ".implements", ".field", ".method") and name is None:
            raise ParseError.malformed(
                f"{directive} before .class directive", line_no, 0, len(line.rstrip())
            )
        elif directive == ".super":
            m = _SUPER_RE.match(line)
            if m is None:
                raise _malformed(directive, line_no, line.rstrip())
            super_class = _class_type(m, "type", line_no)
        elif directive == ".implements":
            m = _IMPLEMENTS_RE.match(line)
            if m is None:
                raise _malformed(directive, line_no, line.rstrip())
            interfaces.append(_class_type(m, "type", line_no))
        elif directive == ".field":
            m = _FIELD_RE.match(line)
            if m is None:
                raise _malformed(directive, line_no, line.rstrip())
            fields.append(_field(m, line_no))
        elif directive == ".method":
            m = _METHOD_RE.match(line)
            if m is None:
                raise _malformed(directive, line_no, line.rstrip())
            method = _method(m, line_no)
            (constructors if method.is_constructor else methods).append(method)
            open_method = line_no

    if open_method is not None:
        raise ParseError.malformed(
            "Unterminated method: missing .end method",
            open_method,
            0,
            len(document.line_at(open_method)),
        )
    if name is None:
        raise ParseError.malformed("Missing .class directive", 0, 0, len(document.line_at(0)))

    return Class(
        text=document.text,
        path=document.path,
        name=name,
        super_class=super_class,
        interfaces=interfaces,
        fields=fields,
        methods=methods,
        constructors=constructors,
    )


def find_class_name(document: TextDocument) -> str | None:
    """Descriptor declared by the document's ``.class`` line, if any."""
    for raw in document.lines():
        m = _CLASS_RE.match(mask_line(raw))
        if m and CLASS_DESCRIPTOR_RE.fullmatch(m.group("type")):
            return m.group("type")
    return None


def find_type(document: TextDocument, position: lsp.Position) -> Type | None:
    """Class descriptor occurrence under the cursor."""
    line = mask_line(document.line_at(position.line))
    for m in CLASS_DESCRIPTOR_RE.finditer(line):
        if m.start() <= position.character <= m.end():
            return Type(text=m.group(), range=_range(position.line, m.start(), m.end()))
    return None


def find_field_definition(document: TextDocument, position: lsp.Position) -> Field | None:
    """Field declaration whose name is under the cursor."""
    m = _FIELD_RE.match(mask_line(document.line_at(position.line)))
    if m is None:
        return None
    try:
        field = _field(m, position.line)
    except ParseError:
        return None
    return field if field.name.contains(position) else None


def find_method_definition(document: TextDocument, position: lsp.Position) -> Method | None:
    """Method or constructor declaration whose name is under the cursor."""
    m = _METHOD_RE.match(mask_line(document.line_at(position.line)))
    if m is None:
        return None
    try:
        method = _method(m, position.line)
    except ParseError:
        return None
    return method if method.name.contains(position) else None


def find_field_reference(
    document: TextDocument, position: lsp.Position
) -> tuple[Type | None, Field | None]:
    """Qualified ``owner->name:Type`` reference with the cursor on ``name``."""
    line = mask_line(document.line_at(position.line))
    for m in _FIELD_REF_RE.finditer(line):
        if m.start("name") <= position.character <= m.end("name"):
            owner = Type(
                text=m.group("owner"),
                range=_range(position.line, m.start("owner"), m.end("owner")),
            )
            return owner, _field(m, position.line)
    return None, None


def find_method_reference(
    document: TextDocument, position: lsp.Position
) -> tuple[Type | None, Method | None]:
    """Qualified ``owner->name(params)ret`` reference with the cursor on ``name``."""
    line = mask_line(document.line_at(position.line))
    for m in _METHOD_REF_RE.finditer(line):
        if m.start("name") <= position.character <= m.end("name"):
            try:
                method = _method(m, position.line)
            except ParseError:
                return None, None
            owner = Type(
                text=m.group("owner"),
                range=_range(position.line, m.start("owner"), m.end("owner")),
            )
            return owner, method
    return None, None
