from __future__ import annotations

import pytest

from sidconf.errors import ErrorKind
from sidconf.ini import Document
from sidconf.parsing import ParseError
from sidconf.reader import (
    C64_MODELS,
    SAMPLING_METHODS,
    InvalidTime,
    SettingsReader,
    format_time,
    parse_char,
    parse_time,
)
from sidconf.settings import ASCII_GLYPHS, C64Model, Color, SamplingMethod, Settings


def make_reader(text: str) -> SettingsReader:
    doc = Document()
    doc.loads(text)
    return SettingsReader(doc, songlength_default=None)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1:30.500", 90500),
        ("90", 90000),
        ("99:59.999", 5999999),
        ("0:00", 0),
        ("3:30", 210000),
        ("1:05.5", 65500),
        ("1:05.05", 65050),
    ],
)
def test_parse_time(text, expected):
    assert parse_time(text) == expected


@pytest.mark.parametrize("text", ["100:00", "1:60", "-1:00", "1:00.1234", "-5"])
def test_parse_time_out_of_range(text):
    with pytest.raises(InvalidTime):
        parse_time(text)


@pytest.mark.parametrize("text", ["abc", "1:xx", "1:30.5a", "1:30."])
def test_parse_time_not_numeric(text):
    with pytest.raises(ParseError):
        parse_time(text)


def test_format_time():
    assert format_time(210000) == "03:30"
    assert format_time(90500) == "01:30.500"


@pytest.mark.parametrize(
    "text,expected",
    [("'A'", "A"), ("65", "A"), ("' '", " "), ("32", " "), ("'''", "'")],
)
def test_parse_char(text, expected):
    assert parse_char(text) == expected


@pytest.mark.parametrize("text", ["'\t'", "9", "''", "'AB'", "'A", "-1"])
def test_parse_char_ignored(text):
    assert parse_char(text) is None


def test_parse_char_bad_number():
    with pytest.raises(ParseError):
        parse_char("A")


def test_missing_key_is_added_empty():
    reader = make_reader("[Audio]\n")
    section = reader.select("Audio")
    result = reader.read_int(section, "Frequency")
    assert not result.ok
    assert result.or_default(48000) == 48000
    assert section.get_value("Frequency") == ""
    assert reader.document.changed


def test_existing_key_does_not_mark_dirty():
    reader = make_reader("[Audio]\nFrequency = 44100\n")
    section = reader.select("Audio")
    assert reader.read_int(section, "Frequency").value == 44100
    assert not reader.document.changed


def test_empty_value_keeps_default():
    reader = make_reader("[Audio]\nFrequency =\n")
    section = reader.select("Audio")
    assert reader.read_int(section, "Frequency").or_default(48000) == 48000
    assert not reader.document.changed
    assert reader.issues == []


def test_select_adds_missing_section():
    reader = make_reader("[Audio]\n")
    section = reader.select("Console")
    assert section.name == "Console"
    assert reader.document.section_names() == ["Audio", "Console"]


def test_coercion_failure_is_reported():
    reader = make_reader("[Audio]\nFrequency = fast\n")
    section = reader.select("Audio")
    result = reader.read_int(section, "Frequency")
    assert result.value is None
    assert result.issue is not None
    assert result.issue.kind is ErrorKind.COERCION
    assert result.issue.key == "Frequency"
    assert result.issue.section == "Audio"
    assert result.issue.message == "Error parsing int at Frequency"
    assert reader.issues == [result.issue]


def test_read_bool_false_is_a_value():
    reader = make_reader("[Emulation]\nUseFilter = false\n")
    section = reader.select("Emulation")
    assert reader.read_bool(section, "UseFilter").or_default(True) is False


def test_read_time_messages():
    reader = make_reader("[S]\nA = 100:00\nB = soon\n")
    section = reader.select("S")
    assert reader.read_time(section, "A").issue.message == "Invalid time at A"
    assert reader.read_time(section, "B").issue.message == "Error parsing time at B"


def test_read_color():
    reader = make_reader("[Console]\nA = bright red\nB = BRIGHT RED\nC = black\n")
    section = reader.select("Console")
    assert reader.read_color(section, "A").value is Color.BRIGHT_RED
    assert int(reader.read_color(section, "A").value) == 9
    assert reader.read_color(section, "B").or_default(Color.WHITE) is Color.WHITE
    assert reader.read_color(section, "C").value is Color.BLACK
    assert reader.issues == []


def test_read_char():
    reader = make_reader("[Console]\nA = 'A'\nB = 65\nC = '\t'\nD = x\n")
    section = reader.select("Console")
    assert reader.read_char(section, "A").value == "A"
    assert reader.read_char(section, "B").value == "A"
    assert reader.read_char(section, "C").or_default("+") == "+"
    assert reader.read_char(section, "D").issue is not None


def test_read_enum_ignores_unknown_values():
    reader = make_reader("[Emulation]\nC64Model = FOO\nSampling = RESAMPLE\n")
    section = reader.select("Emulation")
    assert reader.read_enum(section, "C64Model", C64_MODELS).or_default(C64Model.PAL) is C64Model.PAL
    assert reader.read_enum(section, "Sampling", SAMPLING_METHODS).value is SamplingMethod.RESAMPLE_INTERPOLATE
    assert reader.issues == []


def test_read_enum_is_case_sensitive():
    reader = make_reader("[Emulation]\nC64Model = ntsc\n")
    section = reader.select("Emulation")
    assert reader.read_enum(section, "C64Model", C64_MODELS).value is None


def test_version_must_be_positive():
    settings = Settings()
    reader = make_reader("[SIDPlayfp]\nVersion = 0\n")
    reader.read_sidplay2(settings.sidplay2)
    assert settings.sidplay2.version == 1

    reader = make_reader("[SIDPlayfp]\nVersion = 2\n")
    reader.read_sidplay2(settings.sidplay2)
    assert settings.sidplay2.version == 2


def test_songlength_fallback_used_when_empty(tmp_path):
    db = tmp_path / "Songlengths.txt"
    settings = Settings()
    doc = Document()
    doc.loads("[SIDPlayfp]\n")
    SettingsReader(doc, songlength_default=lambda: db).read_sidplay2(settings.sidplay2)
    assert settings.sidplay2.database == str(db)

    doc = Document()
    doc.loads("[SIDPlayfp]\nSonglength Database = /elsewhere.txt\n")
    SettingsReader(doc, songlength_default=lambda: db).read_sidplay2(settings.sidplay2)
    assert settings.sidplay2.database == "/elsewhere.txt"


def test_ascii_mode_replaces_glyphs():
    settings = Settings()
    make_reader("[Console]\nASCII = true\n").read_console(settings.console)
    assert settings.console.top_left == ASCII_GLYPHS["top_left"]
    assert settings.console.vertical == "|"
    assert settings.console.horizontal == "-"


def test_ascii_mode_off_keeps_box_glyphs():
    settings = Settings()
    make_reader("[Console]\nASCII = false\n").read_console(settings.console)
    assert settings.console.top_left == "┌"


def test_legacy_filter_range_is_renamed():
    reader = make_reader("[Emulation]\nfilterRange6581 = 0.75\n")
    settings = Settings()
    reader.read_emulation(settings.emulation)
    section = reader.document.set_section("Emulation")
    assert settings.emulation.filter_range_6581 == 0.75
    assert section.get_value("filterRange6581") is None
    assert section.get_value("FilterRange6581") == "0.75"


def test_legacy_filter_range_empty_is_left_alone():
    reader = make_reader("[Emulation]\nfilterRange6581 =\n")
    settings = Settings()
    reader.read_emulation(settings.emulation)
    section = reader.document.set_section("Emulation")
    assert section.get_value("filterRange6581") == ""
    assert settings.emulation.filter_range_6581 == 0.5


def test_emulation_group():
    reader = make_reader(
        "[Emulation]\n"
        "Engine = RESIDFP\n"
        "C64Model = NTSC\n"
        "CiaModel = MOS8521\n"
        "SidModel = MOS8580\n"
        "UseFilter = false\n"
        "FilterBias = 0.25\n"
        "CombinedWaveforms = STRONG\n"
        "PowerOnDelay = 100\n"
        "Sampling = INTERPOLATE\n"
    )
    e = Settings().emulation
    reader.read_emulation(e)
    assert e.engine == "RESIDFP"
    assert e.model_default is C64Model.NTSC
    assert e.cia_model.value == "MOS8521"
    assert e.sid_model.value == "MOS8580"
    assert e.filter is False
    assert e.bias == 0.25
    assert e.combined_waveforms.value == "STRONG"
    assert e.power_on_delay == 100
    assert e.sampling_method is SamplingMethod.INTERPOLATE
    assert reader.issues == []


def test_negative_seconds_are_an_invalid_time():
    reader = make_reader("[SIDPlayfp]\nDefault Play Length = -30\n")
    section = reader.select("SIDPlayfp")
    result = reader.read_time(section, "Default Play Length")
    assert result.value is None
    assert result.issue.message == "Invalid time at Default Play Length"
