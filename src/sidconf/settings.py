"""Typed settings record populated from the configuration file."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Dict, Mapping


class Color(IntEnum):
    """Console colors, in ANSI order."""
    BLACK = 0
    RED = 1
    GREEN = 2
    YELLOW = 3
    BLUE = 4
    MAGENTA = 5
    CYAN = 6
    WHITE = 7
    BRIGHT_BLACK = 8
    BRIGHT_RED = 9
    BRIGHT_GREEN = 10
    BRIGHT_YELLOW = 11
    BRIGHT_BLUE = 12
    BRIGHT_MAGENTA = 13
    BRIGHT_CYAN = 14
    BRIGHT_WHITE = 15

    @property
    def label(self) -> str:
        """Name as written in the configuration file, e.g. ``bright red``."""
        return COLOR_NAMES[self]


COLOR_NAMES = (
    "black",
    "red",
    "green",
    "yellow",
    "blue",
    "magenta",
    "cyan",
    "white",
    "bright black",
    "bright red",
    "bright green",
    "bright yellow",
    "bright blue",
    "bright magenta",
    "bright cyan",
    "bright white",
)

COLORS_BY_NAME: Mapping[str, Color] = MappingProxyType(
    {name: Color(index) for index, name in enumerate(COLOR_NAMES)}
)


class C64Model(Enum):
    PAL = "PAL"
    NTSC = "NTSC"
    OLD_NTSC = "OLD_NTSC"
    DREAN = "DREAN"


class CiaModel(Enum):
    MOS6526 = "MOS6526"
    MOS8521 = "MOS8521"


class SidModel(Enum):
    MOS6581 = "MOS6581"
    MOS8580 = "MOS8580"


class CombinedWaveforms(Enum):
    AVERAGE = "AVERAGE"
    WEAK = "WEAK"
    STRONG = "STRONG"


class SamplingMethod(Enum):
    INTERPOLATE = "INTERPOLATE"
    RESAMPLE_INTERPOLATE = "RESAMPLE_INTERPOLATE"


DEFAULT_SAMPLING_FREQ = 48000

BOX_GLYPHS: Mapping[str, str] = MappingProxyType({
    "top_left": "┌",
    "top_right": "┐",
    "bottom_left": "└",
    "bottom_right": "┘",
    "vertical": "│",
    "horizontal": "─",
    "junction_left": "┤",
    "junction_right": "├",
})

ASCII_GLYPHS: Mapping[str, str] = MappingProxyType({
    "top_left": "+",
    "top_right": "+",
    "bottom_left": "+",
    "bottom_right": "+",
    "vertical": "|",
    "horizontal": "-",
    "junction_left": "+",
    "junction_right": "+",
})


@dataclass
class Sidplay2Settings:
    version: int = 1
    database: str = ""
    play_length: int = 0  # ms, 0 plays forever
    record_length: int = (3 * 60 + 30) * 1000
    kernal_rom: str = ""
    basic_rom: str = ""
    chargen_rom: str = ""
    verbose_level: int = 0


@dataclass
class ConsoleSettings:
    ansi: bool = False
    top_left: str = BOX_GLYPHS["top_left"]
    top_right: str = BOX_GLYPHS["top_right"]
    bottom_left: str = BOX_GLYPHS["bottom_left"]
    bottom_right: str = BOX_GLYPHS["bottom_right"]
    vertical: str = BOX_GLYPHS["vertical"]
    horizontal: str = BOX_GLYPHS["horizontal"]
    junction_left: str = BOX_GLYPHS["junction_left"]
    junction_right: str = BOX_GLYPHS["junction_right"]
    decorations: Color = Color.BRIGHT_WHITE
    title: Color = Color.WHITE
    label_core: Color = Color.BRIGHT_GREEN
    text_core: Color = Color.BRIGHT_YELLOW
    label_extra: Color = Color.BRIGHT_MAGENTA
    text_extra: Color = Color.BRIGHT_CYAN
    notes: Color = Color.BRIGHT_BLUE
    control_on: Color = Color.BRIGHT_GREEN
    control_off: Color = Color.BRIGHT_RED

    def use_ascii(self) -> None:
        """Replace the box drawing glyphs with plain ASCII."""
        for name, glyph in ASCII_GLYPHS.items():
            setattr(self, name, glyph)


@dataclass
class AudioSettings:
    frequency: int = DEFAULT_SAMPLING_FREQ
    channels: int = 0  # 0 lets the tune decide
    precision: int = 16
    buf_length: int = 250  # ms


@dataclass
class EmulationSettings:
    engine: str = ""
    model_default: C64Model = C64Model.PAL
    model_forced: bool = False
    digiboost: bool = False
    cia_model: CiaModel = CiaModel.MOS6526
    sid_model: SidModel = SidModel.MOS6581
    force_model: bool = False
    filter: bool = True
    bias: float = 0.5
    filter_curve_6581: float = 0.5
    filter_range_6581: float = 0.5
    filter_curve_8580: float = 0.5
    combined_waveforms: CombinedWaveforms = CombinedWaveforms.AVERAGE
    power_on_delay: int = -1  # negative picks a random delay
    sampling_method: SamplingMethod = SamplingMethod.RESAMPLE_INTERPOLATE
    fast_sampling: bool = False


def _plain(value: Any) -> Any:
    if isinstance(value, Color):
        return value.label
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


@dataclass
class Settings:
    sidplay2: Sidplay2Settings = field(default_factory=Sidplay2Settings)
    console: ConsoleSettings = field(default_factory=ConsoleSettings)
    audio: AudioSettings = field(default_factory=AudioSettings)
    emulation: EmulationSettings = field(default_factory=EmulationSettings)

    def clear(self) -> None:
        """Reset every group to its defaults."""
        for f in fields(self):
            setattr(self, f.name, f.default_factory())  # type: ignore[misc]

    def to_dict(self) -> Dict[str, Any]:
        """Plain data view: enums by value, colors by name."""
        return _plain(asdict(self))

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)
