"""Declaration model shared by the scanner, generator and index."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional


@dataclass(frozen=True)
class Parameter:
    """One declared parameter of a native-call function."""
    type: str
    name: str

    def __str__(self) -> str:
        return f"{self.type} {self.name}"


@dataclass(frozen=True)
class CppFunction:
    """A member function backed by a NativeCall."""
    class_name: str
    return_type: str
    name: str
    parameters: tuple[Parameter, ...] = ()
    is_static: bool = False
    is_virtual: bool = False
    native_call_signature: str = ""
    full_text: str = ""
    source_file: str = ""

    @property
    def hook_name(self) -> str:
        return f"{self.class_name}_{self.name}"

    @property
    def parameter_types(self) -> list[str]:
        return [p.type for p in self.parameters]

    @property
    def display_name(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"{self.return_type} {self.name}({params})"

    def with_source(self, source_file: str) -> CppFunction:
        return replace(self, source_file=source_file)

    def __str__(self) -> str:
        return self.display_name


@dataclass(frozen=True)
class CppField:
    """A plain or bit-field accessor.

    ``identifier_path`` is the ``"Class.member"`` string the runtime resolves
    bit-fields by; it is empty for plain fields.
    """
    class_name: str
    type: str
    name: str
    full_text: str = ""
    is_bit_field: bool = False
    identifier_path: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.type} {self.name}"

    def __str__(self) -> str:
        return self.display_name


@dataclass
class ParsedUnit:
    """Everything recognised in one header."""
    class_name: str = ""
    functions: list[CppFunction] = field(default_factory=list)
    fields: list[CppField] = field(default_factory=list)
    bit_fields: list[CppField] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.functions or self.fields or self.bit_fields)

    def find_function(self, name: str) -> Optional[CppFunction]:
        for func in self.functions:
            if func.name == name:
                return func
        return None

    def find_field(self, name: str) -> Optional[CppField]:
        for fld in self.fields + self.bit_fields:
            if fld.name == name:
                return fld
        return None


@dataclass(frozen=True)
class FileEntry:
    """Summary of one scanned source, kept for listing without re-parsing."""
    file_name: str
    full_path: str
    relative_path: str
    directory: str
    class_name: str = ""
    function_count: int = 0
    field_count: int = 0

    def __str__(self) -> str:
        return self.file_name


@dataclass(frozen=True)
class GlobalIndex:
    """Immutable snapshot of one indexing pass.

    ``attempted`` counts the sources the pass tried, ``scanned`` the ones
    whose content could be read.
    """
    entries: tuple[FileEntry, ...] = ()
    functions: tuple[CppFunction, ...] = ()
    attempted: int = 0
    scanned: int = 0
    origin: str = ""

    @property
    def status(self) -> str:
        text = (f"Indexed {self.scanned}/{self.attempted} sources: "
                f"{len(self.entries)} files, {len(self.functions)} functions")
        if self.scanned < self.attempted:
            text += f" ({self.attempted - self.scanned} unavailable)"
        return text
