"""Render hook boilerplate for scanned native-call functions.

Output must match the hooking API byte-for-byte, so every template here is
a plain string build with fixed indentation (four spaces) and ``\\n`` line
endings. Nothing in this module performs I/O or raises on odd input: a
function with no parameters or no class simply renders a shorter block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from asa_hook_creator.models import CppField, CppFunction
from asa_hook_creator.patterns import defaults


DECLARE = "declare"
STUB = "stub"
PRE = "pre"
POST = "post"
REGISTER = "register"
UNREGISTER = "unregister"
ALL = "all"

MODES = [DECLARE, STUB, PRE, POST, REGISTER, UNREGISTER, ALL]

INDENT = "    "


@dataclass(frozen=True)
class HookConvention:
    """Names used by the external hooking API."""
    hooks_accessor: str = "AsaApi::GetHooks()"
    declare_macro: str = "DECLARE_HOOK"
    log_call: str = "Log::GetLog()->info"
    includes: tuple[str, ...] = field(default_factory=tuple)
    title: str = "ASA API"

    @classmethod
    def from_preset(cls, name: str) -> HookConvention:
        preset = defaults.PRESETS.get(name)
        if preset is None:
            raise KeyError(f"Unknown hook preset: {name}")
        return cls(
            hooks_accessor=preset["hooks_accessor"],
            declare_macro=preset["declare_macro"],
            log_call=preset["log_call"],
            includes=tuple(preset.get("includes", [])),
            title=preset.get("title", name),
        )


DEFAULT_CONVENTION = HookConvention.from_preset(defaults.DEFAULT_PRESET)


# ---------------------------------------------------------------------------
# Signature pieces
# ---------------------------------------------------------------------------

def is_void(return_type: str) -> bool:
    """Case-insensitive exact match; typedefs of void are not void."""
    return return_type.lower() == "void"


def key_string(function: CppFunction) -> str:
    """``Class.Method(Type1, Type2)`` used to register and unregister hooks."""
    return f"{function.class_name}.{function.name}({', '.join(function.parameter_types)})"


def _parameter_list(function: CppFunction) -> str:
    params = []
    if not function.is_static:
        params.append(f"{function.class_name}* _this")
    params.extend(f"{p.type} {p.name}" for p in function.parameters)
    return ", ".join(params)


def _argument_list(function: CppFunction) -> str:
    args = []
    if not function.is_static:
        args.append("_this")
    args.extend(p.name for p in function.parameters)
    return ", ".join(args)


def _macro_types(function: CppFunction) -> list[str]:
    # The receiver type is always declared, static or not
    return [f"{function.class_name}*"] + function.parameter_types


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------

def generate_declare_hook(function: CppFunction,
                          convention: HookConvention = DEFAULT_CONVENTION) -> str:
    return_type = "void" if is_void(function.return_type) else function.return_type
    args = [function.hook_name, return_type] + _macro_types(function)
    return f"{convention.declare_macro}({', '.join(args)});"


def generate_hook_stub(function: CppFunction) -> str:
    hook_name = function.hook_name
    call = f"{hook_name}.original({_argument_list(function)});"
    body = call if is_void(function.return_type) else f"return {call}"
    return "\n".join([
        f"{function.return_type} Hook_{hook_name}({_parameter_list(function)})",
        "{",
        f"{INDENT}{body}",
        "}",
    ])


def generate_pre_hook(function: CppFunction, include_original: bool = True,
                      convention: HookConvention = DEFAULT_CONVENTION) -> str:
    qualified = f"{function.class_name}::{function.name}"
    original = f"{function.name}_original({_argument_list(function)});"

    lines = [
        f"// Pre-hook for {qualified}",
        f"{function.return_type} PreHook_{function.name}({_parameter_list(function)})",
        "{",
        f"{INDENT}// Your pre-hook logic here",
        f'{INDENT}{convention.log_call}("{qualified} - Pre-hook");',
    ]
    if include_original:
        lines.append("")
        if is_void(function.return_type):
            lines.append(f"{INDENT}// Call original")
            lines.append(f"{INDENT}{original}")
        else:
            lines.append(f"{INDENT}// Call original and return result")
            lines.append(f"{INDENT}return {original}")
    lines.append("}")
    return "\n".join(lines)


def generate_post_hook(function: CppFunction, include_original: bool = True,
                       convention: HookConvention = DEFAULT_CONVENTION) -> str:
    qualified = f"{function.class_name}::{function.name}"
    original = f"{function.name}_original({_argument_list(function)});"
    log_lines = [
        f"{INDENT}// Your post-hook logic here",
        f'{INDENT}{convention.log_call}("{qualified} - Post-hook");',
    ]

    lines = [
        f"// Post-hook for {qualified}",
        f"{function.return_type} PostHook_{function.name}({_parameter_list(function)})",
        "{",
    ]
    if not include_original:
        lines.extend(log_lines)
    elif is_void(function.return_type):
        lines.append(f"{INDENT}// Call original first")
        lines.append(f"{INDENT}{original}")
        lines.append("")
        lines.extend(log_lines)
    else:
        lines.append(f"{INDENT}// Call original first")
        lines.append(f"{INDENT}auto result = {original}")
        lines.append("")
        lines.extend(log_lines)
        lines.append("")
        lines.append(f"{INDENT}return result;")
    lines.append("}")
    return "\n".join(lines)


def generate_set_hook(function: CppFunction, indent: str = "",
                      convention: HookConvention = DEFAULT_CONVENTION) -> str:
    hook_name = function.hook_name
    return "\n".join([
        f'{indent}{convention.hooks_accessor}.SetHook("{key_string(function)}",',
        f"{indent}{INDENT}&Hook_{hook_name},",
        f"{indent}{INDENT}&{hook_name});",
    ])


def generate_disable_hook(function: CppFunction, indent: str = "",
                          convention: HookConvention = DEFAULT_CONVENTION) -> str:
    return "\n".join([
        f'{indent}{convention.hooks_accessor}.DisableHook("{key_string(function)}",',
        f"{indent}{INDENT}&Hook_{function.hook_name});",
    ])


def generate_all(function: CppFunction,
                 convention: HookConvention = DEFAULT_CONVENTION) -> str:
    """DECLARE_HOOK, hook stub and SetHook call separated by blank lines."""
    blocks = [
        generate_declare_hook(function, convention),
        generate_hook_stub(function),
        generate_set_hook(function, convention=convention),
    ]
    return "\n\n".join(blocks) + "\n"


def generate_with_unregister(function: CppFunction,
                             convention: HookConvention = DEFAULT_CONVENTION) -> str:
    return generate_all(function, convention) + "\n" + generate_disable_hook(function, convention=convention) + "\n"


def generate(function: CppFunction, mode: str, include_original: bool = True,
             convention: HookConvention = DEFAULT_CONVENTION) -> str:
    """Render ``function`` in one of MODES.

    Unknown modes fall back to ``all``.
    """
    dispatch = {
        DECLARE:    lambda: generate_declare_hook(function, convention),
        STUB:       lambda: generate_hook_stub(function),
        PRE:        lambda: generate_pre_hook(function, include_original, convention),
        POST:       lambda: generate_post_hook(function, include_original, convention),
        REGISTER:   lambda: generate_set_hook(function, convention=convention),
        UNREGISTER: lambda: generate_disable_hook(function, convention=convention),
        ALL:        lambda: generate_all(function, convention),
    }
    handler = dispatch.get(mode, dispatch[ALL])
    return handler()


# ---------------------------------------------------------------------------
# Fields and whole files
# ---------------------------------------------------------------------------

def generate_field_accessor(fld: CppField) -> str:
    """Usage snippet for a field accessor."""
    lines = [f"// Field accessor for {fld.class_name}::{fld.name}"]
    local = fld.name[:-len(defaults.FIELD_SUFFIX)] if fld.name.endswith(defaults.FIELD_SUFFIX) else fld.name
    if fld.is_bit_field:
        lines.append(f"// BitField: {fld.identifier_path}")
        lines.append(f"auto {local} = character->{fld.name}();")
    else:
        lines.append(f"auto& {local} = instance->{fld.name}();")
    return "\n".join(lines) + "\n"


def _banner(title: str) -> list[str]:
    rule = "// ==========================================="
    return [rule, f"// {title}", rule]


def generate_class_file(class_name: str, functions: Iterable[CppFunction],
                        convention: HookConvention = DEFAULT_CONVENTION) -> str:
    """A complete hooks header: every hook plus SetupHooks/RemoveHooks."""
    functions = list(functions)

    lines = [
        "// ===========================================",
        f"// {convention.title} Hooks for {class_name}",
        "// Generated by ASA Hook Creator",
        "// ===========================================",
        "",
        "#pragma once",
        "",
    ]
    lines.extend(f'#include "{inc}"' for inc in convention.includes)
    if convention.includes:
        lines.append("")

    for func in functions:
        lines.append(generate_all(func, convention))
        lines.append("")

    lines.extend(_banner("Load function - Initialize all hooks"))
    lines.append("void SetupHooks()")
    lines.append("{")
    for func in functions:
        lines.append(generate_set_hook(func, indent=INDENT, convention=convention))
        lines.append("")
    lines.append("}")
    lines.append("")

    lines.extend(_banner("Unload function - Remove all hooks"))
    lines.append("void RemoveHooks()")
    lines.append("{")
    for func in functions:
        lines.append(generate_disable_hook(func, indent=INDENT, convention=convention))
        lines.append("")
    lines.append("}")

    return "\n".join(lines) + "\n"
