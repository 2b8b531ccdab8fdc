"""Tests for the asa-hooks command line."""

from types import SimpleNamespace

import pytest

from asa_hook_creator.cli import main


HEADER = """
struct APrimalCharacter : ACharacter
{
	float& HealthField() { return *GetNativePointerField<float*>(this, "APrimalCharacter.Health"); }
	BitFieldValue<bool, unsigned __int32> bIsCrouchedField() { return { this, "APrimalCharacter.bIsCrouched" }; }
	float GetHealth() { return NativeCall<float>(this, "APrimalCharacter.GetHealth()"); }
	void BeginPlay() { NativeCall<void>(this, "APrimalCharacter.BeginPlay()"); }
};
"""

NO_CONFIG = ["--config", "/nonexistent/asa-hooks.yaml"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("ASA_HOOKS_SOURCE_ROOT", "ASA_HOOKS_PRESET",
                 "ASA_HOOKS_MAX_WORKERS", "ASA_HOOKS_DEBOUNCE_MS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def header(tmp_path):
    path = tmp_path / "PrimalCharacter.h"
    path.write_text(HEADER)
    return str(path)


def test_no_command(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()


def test_parse(header, capsys):
    assert main(NO_CONFIG + ["parse", header]) == 0
    out = capsys.readouterr().out
    assert "// Class:      APrimalCharacter" in out
    assert "// Functions:  2" in out
    assert "float GetHealth()" in out
    assert "APrimalCharacter.bIsCrouched" in out


def test_parse_missing_file(tmp_path, capsys):
    assert main(NO_CONFIG + ["parse", str(tmp_path / "nope.h")]) == 1
    assert "ERROR: Cannot read" in capsys.readouterr().out


def test_generate_register(header, capsys):
    assert main(NO_CONFIG + ["generate", header, "GetHealth", "--mode", "register"]) == 0
    assert capsys.readouterr().out == (
        'AsaApi::GetHooks().SetHook("APrimalCharacter.GetHealth()",\n'
        "    &Hook_APrimalCharacter_GetHealth,\n"
        "    &APrimalCharacter_GetHealth);\n"
    )


def test_generate_all_with_preset(header, capsys):
    assert main(NO_CONFIG + ["--preset", "ark-api", "generate", header, "BeginPlay"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("DECLARE_HOOK(APrimalCharacter_BeginPlay, void, APrimalCharacter*);\n")
    assert 'ArkApi::GetHooks().SetHook("APrimalCharacter.BeginPlay()",' in out


def test_generate_with_unregister(header, capsys):
    assert main(NO_CONFIG + ["generate", header, "GetHealth", "--with-unregister"]) == 0
    assert "DisableHook(" in capsys.readouterr().out


def test_generate_field(header, capsys):
    assert main(NO_CONFIG + ["generate", header, "HealthField"]) == 0
    assert "auto& Health = instance->HealthField();" in capsys.readouterr().out


def test_generate_unknown_name(header, capsys):
    assert main(NO_CONFIG + ["generate", header, "Nope"]) == 1
    out = capsys.readouterr().out
    assert "ERROR: No function or field named 'Nope'" in out
    assert "  GetHealth" in out


def test_generate_unknown_preset(header, capsys):
    assert main(NO_CONFIG + ["--preset", "nope", "generate", header, "GetHealth"]) == 1
    assert "ERROR: Unknown hook preset: nope" in capsys.readouterr().out


def test_generate_class_to_file(header, tmp_path, capsys):
    output = tmp_path / "Hooks.h"
    assert main(NO_CONFIG + ["generate-class", header, "--filter", "health", "-o", str(output)]) == 0
    out = capsys.readouterr().out
    assert f"Saved to: {output}" in out
    assert "Generated hooks for 1 functions" in out

    code = output.read_text()
    assert "void SetupHooks()" in code
    assert "APrimalCharacter_GetHealth" in code
    assert "BeginPlay" not in code


def test_index_folder(header, tmp_path, capsys):
    assert main(NO_CONFIG + ["index", str(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert "Indexed 1/1 sources: 1 files, 2 functions" in out
    assert "PrimalCharacter.h" in out


def test_index_missing_folder(tmp_path, capsys):
    assert main(NO_CONFIG + ["index", str(tmp_path / "missing")]) == 1
    assert "ERROR: Source root not found" in capsys.readouterr().out


def test_index_needs_a_source(capsys):
    assert main(NO_CONFIG + ["index"]) == 1
    assert "ERROR: No source root configured" in capsys.readouterr().out


def test_search(header, tmp_path, capsys):
    assert main(NO_CONFIG + ["--source-root", str(tmp_path), "search", "primal", "health"]) == 0
    out = capsys.readouterr().out
    assert "Found 1 functions matching 'primal health'" in out
    assert "APrimalCharacter::float GetHealth()" in out


def test_search_no_match(header, tmp_path, capsys):
    assert main(NO_CONFIG + ["search", "nothing", "--folder", str(tmp_path)]) == 1
    assert "No functions matching 'nothing'" in capsys.readouterr().out


def test_presets(capsys):
    assert main(NO_CONFIG + ["presets"]) == 0
    out = capsys.readouterr().out
    assert "asa-api" in out
    assert "ArkApi::GetHooks()" in out


def test_watch_until_interrupted(header, tmp_path, monkeypatch, capsys):
    from asa_hook_creator import commands

    def interrupt(seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(commands, "time", SimpleNamespace(sleep=interrupt))
    assert main(NO_CONFIG + ["watch", str(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert "Found 1 header files with 2 functions (watching for changes)" in out
    assert "File watching stopped" in out


def test_watch_missing_folder(tmp_path, capsys):
    assert main(NO_CONFIG + ["watch", str(tmp_path / "missing")]) == 1
    assert "ERROR: Source root not found" in capsys.readouterr().out
