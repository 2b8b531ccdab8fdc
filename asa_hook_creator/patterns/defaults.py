"""Default declaration markers and hook conventions.

The scanner markers describe the fixed dialect of the AsaApi headers. The
hook presets describe the external hooking API the generated code targets;
pick one with ``hooks.preset`` in asa-hooks.yaml.
"""

# Source file extensions to scan (compared case-insensitively).
HEADER_EXTENSIONS = ['.h', '.hpp']

# Suffix that marks field accessor declarations.
FIELD_SUFFIX = "Field"

# Accessor used by plain field declarations: return *GetNativePointerField<T>(...)
FIELD_ACCESSOR = "GetNativePointerField"

# Wrapper type used by bit-field declarations.
BITFIELD_TYPE = "BitFieldValue"

# Runtime call used by member function declarations.
NATIVE_CALL = "NativeCall"

# Words that may precede a return type and belong to it.
TYPE_QUALIFIERS = {"const", "unsigned", "signed", "volatile", "long", "short",
                   "struct", "class", "enum"}

# Declaration specifiers that may precede the return type.
SPECIFIERS = {"static", "virtual", "inline", "FORCEINLINE"}

# Cap on global function search results.
SEARCH_LIMIT = 200

# Debounce and reload guard for the live index (milliseconds).
DEBOUNCE_MS = 500
MIN_RELOAD_INTERVAL_MS = 500

# Raw GitHub URLs for the AsaApi ARK headers.
DEFAULT_HEADER_URLS: list[str] = [
    "https://raw.githubusercontent.com/ArkServerApi/AsaApi/master/AsaApi/Core/Public/API/ARK/Actor.h",
    "https://raw.githubusercontent.com/ArkServerApi/AsaApi/master/AsaApi/Core/Public/API/ARK/Buff.h",
    "https://raw.githubusercontent.com/ArkServerApi/AsaApi/master/AsaApi/Core/Public/API/ARK/GameMode.h",
    "https://raw.githubusercontent.com/ArkServerApi/AsaApi/master/AsaApi/Core/Public/API/ARK/Inventory.h",
    "https://raw.githubusercontent.com/ArkServerApi/AsaApi/master/AsaApi/Core/Public/API/ARK/Other.h",
    "https://raw.githubusercontent.com/ArkServerApi/AsaApi/master/AsaApi/Core/Public/API/ARK/PrimalStructure.h",
]

REMOTE_DIRECTORY_LABEL = "AsaApi/ARK"


# ---------------------------------------------------------------------------
# Hook convention presets
# ---------------------------------------------------------------------------

PRESETS: dict[str, dict] = {
    "asa-api": {
        "description": "ARK: Survival Ascended server API (AsaApi)",
        "title": "ASA API",
        "hooks_accessor": "AsaApi::GetHooks()",
        "declare_macro": "DECLARE_HOOK",
        "log_call": "Log::GetLog()->info",
        "includes": [
            "AsaApi/Core/Public/API/UE/Math/Vector.h",
            "AsaApi/Core/Public/API/ARK/Actor.h",
        ],
    },
    "ark-api": {
        "description": "ARK: Survival Evolved server API (ArkApi)",
        "title": "ARK API",
        "hooks_accessor": "ArkApi::GetHooks()",
        "declare_macro": "DECLARE_HOOK",
        "log_call": "Log::GetLog()->info",
        "includes": [
            "API/ARK/Ark.h",
        ],
    },
}

DEFAULT_PRESET = "asa-api"
