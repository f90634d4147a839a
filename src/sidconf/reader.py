"""Typed access to a :class:`~sidconf.ini.Document`.

Every ``read_*`` method looks the key up in the given section and follows the
same policy:

* a missing key is added with an empty value, so the file lists every known
  setting after the first run;
* an empty value means "use the default";
* anything else is coerced. Failures are returned in the :class:`Coerced`
  result, logged, and kept in :attr:`SettingsReader.issues`. They never raise.

The ``read_<group>`` methods update a settings group in place and only touch a
field when a value was read successfully.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Generic, List, Mapping, Optional, TypeVar

from .errors import ConfigIssue, ErrorKind
from .ini import Document, Section
from .parsing import ParseError, parse_bool, parse_double, parse_int
from .settings import (
    COLORS_BY_NAME,
    AudioSettings,
    C64Model,
    CiaModel,
    Color,
    CombinedWaveforms,
    ConsoleSettings,
    EmulationSettings,
    SamplingMethod,
    Settings,
    Sidplay2Settings,
    SidModel,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SECTION_SIDPLAY2 = "SIDPlayfp"
SECTION_CONSOLE = "Console"
SECTION_AUDIO = "Audio"
SECTION_EMULATION = "Emulation"

LEGACY_FILTER_RANGE_KEY = "filterRange6581"
FILTER_RANGE_KEY = "FilterRange6581"

C64_MODELS: Mapping[str, C64Model] = MappingProxyType({m.value: m for m in C64Model})
CIA_MODELS: Mapping[str, CiaModel] = MappingProxyType({m.value: m for m in CiaModel})
SID_MODELS: Mapping[str, SidModel] = MappingProxyType({m.value: m for m in SidModel})
COMBINED_WAVEFORMS: Mapping[str, CombinedWaveforms] = MappingProxyType(
    {m.value: m for m in CombinedWaveforms}
)
SAMPLING_METHODS: Mapping[str, SamplingMethod] = MappingProxyType({
    "INTERPOLATE": SamplingMethod.INTERPOLATE,
    "RESAMPLE": SamplingMethod.RESAMPLE_INTERPOLATE,
    # older files spell out the method
    "RESAMPLE_INTERPOLATE": SamplingMethod.RESAMPLE_INTERPOLATE,
})

_MINUTES_MAX = 99
_SECONDS_MAX = 59
_FIRST_PRINTABLE = 32


class InvalidTime(ParseError):
    pass


@dataclass(frozen=True)
class Coerced(Generic[T]):
    """Result of a typed read: a value, nothing, or an issue."""
    value: Optional[T] = None
    issue: Optional[ConfigIssue] = None

    @property
    def ok(self) -> bool:
        return self.value is not None

    def or_default(self, default: T) -> T:
        return default if self.value is None else self.value


def parse_time(text: str) -> int:
    """Parse ``SS`` or ``MM:SS[.mmm]`` into milliseconds.

    Raises :class:`InvalidTime` for out of range parts and
    :class:`ParseError` for non-numeric ones. Negative bare seconds are
    rejected as an invalid time, unlike sidplayfp's own reader which lets
    them through as a negative length.
    """
    sep = text.find(":")
    if sep < 0:
        seconds = parse_int(text)
        if seconds < 0:
            raise InvalidTime(f"negative time: {text!r}")
        return seconds * 1000

    minutes = parse_int(text[:sep])
    if not 0 <= minutes <= _MINUTES_MAX:
        raise InvalidTime(f"minutes out of range: {text!r}")

    sec_text, dot, msec_text = text[sep + 1:].partition(".")
    seconds = parse_int(sec_text)
    milliseconds = 0
    if dot:
        milliseconds = parse_int(msec_text)
        digits = len(msec_text.strip())
        if not 1 <= digits <= 3 or milliseconds < 0:
            raise InvalidTime(f"bad fraction of a second: {text!r}")
        milliseconds *= 10 ** (3 - digits)

    if not 0 <= seconds <= _SECONDS_MAX:
        raise InvalidTime(f"seconds out of range: {text!r}")

    return (minutes * 60 + seconds) * 1000 + milliseconds


def parse_char(text: str) -> Optional[str]:
    """Parse ``'c'`` or a character code; None for ignored input.

    Raises :class:`ParseError` when an unquoted value is not an integer.
    """
    if text.startswith("'"):
        if len(text) != 3 or text[2] != "'":
            return None
        code = ord(text[1])
    else:
        code = parse_int(text)
    if code < _FIRST_PRINTABLE or code > 0x10FFFF:
        return None
    return chr(code)


def format_time(milliseconds: int) -> str:
    """Inverse of :func:`parse_time`, for display."""
    minutes, rest = divmod(milliseconds, 60000)
    seconds, millis = divmod(rest, 1000)
    text = f"{minutes:02d}:{seconds:02d}"
    if millis:
        text += f".{millis:03d}"
    return text


class SettingsReader:
    """Populate a :class:`Settings` record from an open document."""

    def __init__(
        self,
        document: Document,
        songlength_default: Optional[Callable[[], Optional[Path]]] = None,
    ) -> None:
        self.document = document
        self.issues: List[ConfigIssue] = []
        self._songlength_default = songlength_default

    def select(self, name: str) -> Section:
        """Return the section called ``name``, adding it when missing."""
        section = self.document.set_section(name)
        if section is None:
            logger.debug("Section doesn't exist: %s", name)
            section = self.document.add_section(name)
        return section

    # Raw values

    def read_string(self, section: Section, key: str) -> str:
        value = section.get_value(key)
        if value is None:
            section.add_value(key, "")
            logger.debug("Key doesn't exist: %s", key)
            return ""
        return value

    def read_key(self, section: Section, key: str) -> Optional[str]:
        """Like :meth:`read_string` but None for missing or empty values."""
        return self.read_string(section, key) or None

    # Typed values

    def read_int(self, section: Section, key: str) -> Coerced[int]:
        return self._coerce(section, key, parse_int, "int")

    def read_double(self, section: Section, key: str) -> Coerced[float]:
        return self._coerce(section, key, parse_double, "double")

    def read_bool(self, section: Section, key: str) -> Coerced[bool]:
        return self._coerce(section, key, parse_bool, "bool")

    def read_char(self, section: Section, key: str) -> Coerced[str]:
        value = self.read_key(section, key)
        if value is None:
            return Coerced()
        try:
            return Coerced(parse_char(value))
        except ParseError:
            return self._fail(section, key, f"Error parsing int at {key}")

    def read_time(self, section: Section, key: str) -> Coerced[int]:
        value = self.read_key(section, key)
        if value is None:
            return Coerced()
        try:
            return Coerced(parse_time(value))
        except InvalidTime:
            return self._fail(section, key, f"Invalid time at {key}")
        except ParseError:
            return self._fail(section, key, f"Error parsing time at {key}")

    def read_color(self, section: Section, key: str) -> Coerced[Color]:
        value = self.read_key(section, key)
        if value is None:
            return Coerced()
        return Coerced(COLORS_BY_NAME.get(value))

    def read_enum(self, section: Section, key: str, choices: Mapping[str, T]) -> Coerced[T]:
        value = self.read_key(section, key)
        if value is None:
            return Coerced()
        if value not in choices:
            logger.debug("Ignoring unknown %s value: %s", key, value)
        return Coerced(choices.get(value))

    def _coerce(self, section: Section, key: str, parser: Callable[[str], T], type_name: str) -> Coerced[T]:
        value = self.read_key(section, key)
        if value is None:
            return Coerced()
        try:
            return Coerced(parser(value))
        except ParseError:
            return self._fail(section, key, f"Error parsing {type_name} at {key}")

    def _fail(self, section: Section, key: str, message: str) -> Coerced:
        logger.error(message)
        issue = ConfigIssue(ErrorKind.COERCION, message, section=section.name, key=key)
        self.issues.append(issue)
        return Coerced(issue=issue)

    # Groups

    def read(self, settings: Settings) -> Settings:
        self.read_sidplay2(settings.sidplay2)
        self.read_console(settings.console)
        self.read_audio(settings.audio)
        self.read_emulation(settings.emulation)
        return settings

    def read_sidplay2(self, s: Sidplay2Settings) -> None:
        section = self.select(SECTION_SIDPLAY2)

        version = self.read_int(section, "Version").or_default(s.version)
        if version > 0:
            s.version = version

        s.database = self.read_string(section, "Songlength Database")
        if not s.database and self._songlength_default is not None:
            fallback = self._songlength_default()
            if fallback is not None:
                s.database = str(fallback)

        s.play_length = self.read_time(section, "Default Play Length").or_default(s.play_length)
        s.record_length = self.read_time(section, "Default Record Length").or_default(s.record_length)

        s.kernal_rom = self.read_string(section, "Kernal Rom")
        s.basic_rom = self.read_string(section, "Basic Rom")
        s.chargen_rom = self.read_string(section, "Chargen Rom")

        s.verbose_level = self.read_int(section, "VerboseLevel").or_default(s.verbose_level)

    def read_console(self, c: ConsoleSettings) -> None:
        section = self.select(SECTION_CONSOLE)

        if self.read_bool(section, "ASCII").or_default(False):
            c.use_ascii()

        c.ansi = self.read_bool(section, "Ansi").or_default(c.ansi)

        c.decorations = self.read_color(section, "Color Decorations").or_default(c.decorations)
        c.title = self.read_color(section, "Color Title").or_default(c.title)
        c.label_core = self.read_color(section, "Color Label Core").or_default(c.label_core)
        c.text_core = self.read_color(section, "Color Text Core").or_default(c.text_core)
        c.label_extra = self.read_color(section, "Color Label Extra").or_default(c.label_extra)
        c.text_extra = self.read_color(section, "Color Text Extra").or_default(c.text_extra)
        c.notes = self.read_color(section, "Color Notes").or_default(c.notes)
        c.control_on = self.read_color(section, "Color Control On").or_default(c.control_on)
        c.control_off = self.read_color(section, "Color Control Off").or_default(c.control_off)

    def read_audio(self, a: AudioSettings) -> None:
        section = self.select(SECTION_AUDIO)

        a.frequency = self.read_int(section, "Frequency").or_default(a.frequency)
        a.channels = self.read_int(section, "Channels").or_default(a.channels)
        a.precision = self.read_int(section, "BitsPerSample").or_default(a.precision)
        a.buf_length = self.read_int(section, "BufferLength").or_default(a.buf_length)

    def read_emulation(self, e: EmulationSettings) -> None:
        section = self.select(SECTION_EMULATION)

        e.engine = self.read_string(section, "Engine")
        e.model_default = self.read_enum(section, "C64Model", C64_MODELS).or_default(e.model_default)
        e.model_forced = self.read_bool(section, "ForceC64Model").or_default(e.model_forced)
        e.digiboost = self.read_bool(section, "DigiBoost").or_default(e.digiboost)
        e.cia_model = self.read_enum(section, "CiaModel", CIA_MODELS).or_default(e.cia_model)
        e.sid_model = self.read_enum(section, "SidModel", SID_MODELS).or_default(e.sid_model)
        e.force_model = self.read_bool(section, "ForceSidModel").or_default(e.force_model)
        e.filter = self.read_bool(section, "UseFilter").or_default(e.filter)

        e.bias = self.read_double(section, "FilterBias").or_default(e.bias)
        e.filter_curve_6581 = self.read_double(section, "FilterCurve6581").or_default(e.filter_curve_6581)

        legacy = section.get_value(LEGACY_FILTER_RANGE_KEY)
        if legacy:
            logger.info("Renaming %s to %s", LEGACY_FILTER_RANGE_KEY, FILTER_RANGE_KEY)
            section.add_value(FILTER_RANGE_KEY, legacy)
            section.remove_value(LEGACY_FILTER_RANGE_KEY)
        e.filter_range_6581 = self.read_double(section, FILTER_RANGE_KEY).or_default(e.filter_range_6581)

        e.filter_curve_8580 = self.read_double(section, "FilterCurve8580").or_default(e.filter_curve_8580)
        e.combined_waveforms = self.read_enum(
            section, "CombinedWaveforms", COMBINED_WAVEFORMS
        ).or_default(e.combined_waveforms)

        e.power_on_delay = self.read_int(section, "PowerOnDelay").or_default(e.power_on_delay)
        e.sampling_method = self.read_enum(section, "Sampling", SAMPLING_METHODS).or_default(e.sampling_method)
        e.fast_sampling = self.read_bool(section, "ResidFastSampling").or_default(e.fast_sampling)
