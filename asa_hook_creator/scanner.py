"""Extract field, bit-field and native-call declarations from header text.

Headers of the game API declare one struct per file with three kinds of
one-line accessors:

    float& HealthField() { return *GetNativePointerField<float*>(this, "APrimalCharacter.Health"); }
    BitFieldValue<bool, unsigned __int32> bIsCrouchedField() { return { this, "ACharacter.bIsCrouched" }; }
    float GetHealth() { return NativeCall<float>(this, "APrimalCharacter.GetHealth()"); }

The scanner is best-effort: any region that does not match one of these
shapes is skipped, and ``scan`` always returns a ParsedUnit.
"""

from __future__ import annotations

import re
from typing import Optional

from asa_hook_creator.models import CppField, CppFunction, Parameter, ParsedUnit
from asa_hook_creator.patterns import defaults


_CLASS_RE = re.compile(r'struct\s+(\w+)')

_FIELD_RE = re.compile(
    r'\b(\w+' + defaults.FIELD_SUFFIX + r')\(\)\s*\{\s*return\s+\*'
    + defaults.FIELD_ACCESSOR + r'<'
)

_BITFIELD_RE = re.compile(
    defaults.BITFIELD_TYPE
    + r'<([^,>]+),\s*([^>]+)>\s+(\w+)\(\)\s*\{\s*return\s*\{\s*this\s*,\s*"([^"\n]*)"?'
)

_FUNCTION_RE = re.compile(
    r'\b(\w+)\s*\(([^();{}]*)\)\s*(?:const\s*)?\{\s*(?:return\s+)?'
    + defaults.NATIVE_CALL + r'<'
)

# Receiver and quoted signature that follow NativeCall<...>.
# A missing closing quote takes the rest of the line.
_CALL_ARGS_RE = re.compile(r'\s*\(\s*([^,()]+?)\s*,\s*"([^"\n]*)"?')

_STATIC_RE = re.compile(r'\s*static\b')

_NOT_A_TYPE = {"return", "else", "new", "delete", "throw", "case", "goto"}


# ---------------------------------------------------------------------------
# Bracket-aware helpers
# ---------------------------------------------------------------------------

def split_parameters(text: str) -> list[str]:
    """Split a parameter list on commas outside of ``<...>``."""
    result = []
    current: list[str] = []
    depth = 0

    for ch in text:
        if ch == '<':
            depth += 1
        elif ch == '>':
            depth = max(depth - 1, 0)
        elif ch == ',' and depth == 0:
            result.append(''.join(current))
            current = []
            continue
        current.append(ch)

    if current:
        result.append(''.join(current))

    return result


def _last_type_name_separator(param: str) -> int:
    """Index of the last space outside of ``<...>``, or -1."""
    depth = 0
    last_space = -1
    for i, ch in enumerate(param):
        if ch == '<':
            depth += 1
        elif ch == '>':
            depth = max(depth - 1, 0)
        elif ch == ' ' and depth == 0:
            last_space = i
    return last_space


def parse_parameters(text: str) -> list[Parameter]:
    """Parse ``"const FString& msg, TMap<int, float> m, bool"`` into Parameters.

    Everything before the last top-level space is the type, the rest (minus
    leading ``&``/``*``) the name. Parameters without a separable name get
    ``argN`` where N is their position.
    """
    parameters: list[Parameter] = []
    if not text or not text.strip():
        return parameters

    for raw in split_parameters(text):
        item = " ".join(raw.split())
        if not item:
            continue

        last_space = _last_type_name_separator(item)
        name = item[last_space + 1:].lstrip('&*') if last_space > 0 else ""

        if name:
            parameters.append(Parameter(type=item[:last_space].strip(), name=name))
        else:
            parameters.append(Parameter(type=item, name=f"arg{len(parameters)}"))

    return parameters


def _read_generic_args(text: str, pos: int) -> Optional[tuple[str, int]]:
    """Read from just after an opening ``<`` to its matching ``>``.

    Returns ``(inner_text, end_pos)`` or None when the bracket never closes
    before the end of the statement.
    """
    depth = 1
    for i in range(pos, len(text)):
        ch = text[i]
        if ch == '<':
            depth += 1
        elif ch == '>':
            depth -= 1
            if depth == 0:
                return text[pos:i], i + 1
        elif ch in ';{}':
            return None
    return None


def _skip_space_back(text: str, pos: int) -> int:
    while pos > 0 and text[pos - 1] in ' \t':
        pos -= 1
    return pos


def _read_token_before(text: str, end: int) -> int:
    """Start index of the type-like token ending at ``end``."""
    pos = end
    depth = 0
    while pos > 0:
        ch = text[pos - 1]
        if ch in ';{}()"\n\r':
            break
        if ch == '>':
            depth += 1
        elif ch == '<':
            if depth == 0:
                break
            depth -= 1
        elif (ch in ' \t,') and depth == 0:
            break
        pos -= 1
    return pos


def _read_word_before(text: str, end: int) -> tuple[int, str]:
    pos = _skip_space_back(text, end)
    word_end = pos
    while pos > 0 and (text[pos - 1].isalnum() or text[pos - 1] == '_'):
        pos -= 1
    return pos, text[pos:word_end]


def _read_declaration_head(text: str, name_start: int) -> Optional[tuple[int, str, set[str]]]:
    """Read the return type and specifiers in front of a declaration name.

    Returns ``(declaration_start, type_text, specifiers)`` or None when no
    type precedes the name.
    """
    type_end = _skip_space_back(text, name_start)
    start = _read_token_before(text, type_end)

    # "FString * Name": the pointer is its own token
    if text[start:type_end].strip('*& \t') == "" and start < type_end:
        start = _read_token_before(text, _skip_space_back(text, start))

    type_text = text[start:type_end].strip()
    if not type_text or type_text in _NOT_A_TYPE:
        return None
    if not (type_text[0].isalnum() or type_text[0] in '_:'):
        return None

    while True:
        word_start, word = _read_word_before(text, start)
        if word in defaults.TYPE_QUALIFIERS:
            start = word_start
        else:
            break
    type_text = text[start:type_end].strip()

    specifiers: set[str] = set()
    decl_start = start
    while True:
        word_start, word = _read_word_before(text, decl_start)
        if word in defaults.SPECIFIERS:
            specifiers.add(word)
            decl_start = word_start
        else:
            break

    return decl_start, type_text, specifiers


# ---------------------------------------------------------------------------
# Declaration shapes
# ---------------------------------------------------------------------------

def _scan_fields(content: str, class_name: str) -> list[CppField]:
    fields = []
    for match in _FIELD_RE.finditer(content):
        head = _read_declaration_head(content, match.start(1))
        if head is None:
            continue
        decl_start, type_text, _ = head

        end = match.end()
        inner = _read_generic_args(content, end)
        if inner is not None:
            end = inner[1]

        fields.append(CppField(
            class_name=class_name,
            type=type_text,
            name=match.group(1),
            full_text=content[decl_start:end].strip(),
            is_bit_field=False,
        ))
    return fields


def _scan_bit_fields(content: str, class_name: str) -> list[CppField]:
    bit_fields = []
    for match in _BITFIELD_RE.finditer(content):
        value_type = match.group(1).strip()
        storage_type = match.group(2).strip()
        bit_fields.append(CppField(
            class_name=class_name,
            type=f"{defaults.BITFIELD_TYPE}<{value_type}, {storage_type}>",
            name=match.group(3).strip(),
            full_text=match.group(0).strip(),
            is_bit_field=True,
            identifier_path=match.group(4).strip(),
        ))
    return bit_fields


def _scan_functions(content: str, class_name: str) -> list[CppFunction]:
    functions = []
    for match in _FUNCTION_RE.finditer(content):
        name = match.group(1)

        # Field accessors are never functions
        if name.endswith(defaults.FIELD_SUFFIX):
            continue

        sig = _read_generic_args(content, match.end())
        if sig is None:
            continue
        call = _CALL_ARGS_RE.match(content, sig[1])
        if call is None:
            continue

        head = _read_declaration_head(content, match.start(1))
        if head is None:
            continue
        decl_start, return_type, specifiers = head

        full_text = content[decl_start:call.end()].strip()
        functions.append(CppFunction(
            class_name=class_name,
            return_type=return_type,
            name=name,
            parameters=tuple(parse_parameters(match.group(2))),
            is_static=bool(_STATIC_RE.match(full_text)),
            is_virtual="virtual" in specifiers,
            native_call_signature=call.group(2).strip(),
            full_text=full_text,
        ))
    return functions


def scan(text: str) -> ParsedUnit:
    """Scan header text into a ParsedUnit. Never raises on malformed input."""
    content = text or ""
    unit = ParsedUnit()

    class_match = _CLASS_RE.search(content)
    if class_match:
        unit.class_name = class_match.group(1)

    unit.fields = _scan_fields(content, unit.class_name)
    unit.bit_fields = _scan_bit_fields(content, unit.class_name)
    unit.functions = _scan_functions(content, unit.class_name)
    return unit


def parse_declare_macro(line: str, macro: str = "DECLARE_HOOK") -> Optional[CppFunction]:
    """Recover a function from a generated ``DECLARE_HOOK(...)`` line.

    ``DECLARE_HOOK(APrimalCharacter_GetHealth, float, APrimalCharacter*);``
    gives class ``APrimalCharacter``, name ``GetHealth`` and no parameters.
    The first type is always the ``Class*`` receiver, for static functions
    too, so the class comes from it and not from the hook id. The macro does
    not say whether the function was static; the result is never static.
    """
    start = line.find(macro + "(")
    end = line.rfind(")")
    if start < 0 or end < start:
        return None

    args = [a.strip() for a in split_parameters(line[start + len(macro) + 1:end])]
    if len(args) < 3 or not args[0] or not args[2].endswith('*'):
        return None

    hook_id, return_type, receiver, types = args[0], args[1], args[2], args[3:]
    class_name = receiver[:-1].strip()

    if hook_id.startswith(class_name + "_"):
        name = hook_id[len(class_name) + 1:]
    else:
        name = hook_id

    return CppFunction(
        class_name=class_name,
        return_type=return_type,
        name=name,
        parameters=tuple(Parameter(type=t, name=f"arg{i}") for i, t in enumerate(types)),
        full_text=line.strip(),
    )
