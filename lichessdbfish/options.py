"""Book filtering options exposed to the GUI as UCI options.

Every tunable of the opening book lives in one frozen :class:`BookOptions`
value. The GUI changes it through ``setoption``; each accepted assignment
produces a fresh instance, so readers never observe a half-applied change.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class SortBy(Enum):
    GAMES = "Games"
    SCORE = "Score"


class WeightBy(Enum):
    GAMES = "Games"
    SCORE = "Score"
    RANDOM = "Random"


RATING_BANDS: Tuple[str, ...] = ("1600", "1800", "2000", "2200", "2500")
SPEEDS: Tuple[str, ...] = ("bullet", "blitz", "rapid", "classical")


@dataclass(slots=True, frozen=True)
class BookOptions:
    masters: bool = False
    bullet: bool = True
    blitz: bool = True
    rapid: bool = True
    classical: bool = True
    rating_1600: bool = True
    rating_1800: bool = True
    rating_2000: bool = True
    rating_2200: bool = True
    rating_2500: bool = True
    games_min: int = 30
    games_percent_min: int = 1
    score_min: int = 0
    sort_by: SortBy = SortBy.GAMES
    variants: int = 1
    weight_by: WeightBy = WeightBy.RANDOM

    def ratings(self) -> Tuple[str, ...]:
        return tuple(band for band in RATING_BANDS if getattr(self, f"rating_{band}"))

    def speeds(self) -> Tuple[str, ...]:
        return tuple(speed for speed in SPEEDS if getattr(self, speed))


# ---------------------------------------------------------------------------
# Option declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CheckOption:
    name: str
    field: str

    def parse(self, value: str) -> Optional[bool]:
        if value == "true":
            return True
        if value == "false":
            return False
        return None

    def advertise(self, default: bool) -> str:
        return f"option name {self.name} type check default {'true' if default else 'false'}"


@dataclass(frozen=True)
class SpinOption:
    name: str
    field: str
    minimum: int
    maximum: int

    def parse(self, value: str) -> Optional[int]:
        try:
            number = int(value)
        except ValueError:
            return None
        if not self.minimum <= number <= self.maximum:
            return None
        return number

    def advertise(self, default: int) -> str:
        return (
            f"option name {self.name} type spin default {default} "
            f"min {self.minimum} max {self.maximum}"
        )


@dataclass(frozen=True)
class ComboOption:
    name: str
    field: str
    choices: type

    def parse(self, value: str) -> Optional[Enum]:
        for choice in self.choices:
            if choice.value == value:
                return choice
        return None

    def advertise(self, default: Enum) -> str:
        variants = " ".join(f"var {choice.value}" for choice in self.choices)
        return f"option name {self.name} type combo default {default.value} {variants}"


UciOption = Union[CheckOption, SpinOption, ComboOption]

# Advertisement order is part of the handshake output.
UCI_OPTIONS: Tuple[UciOption, ...] = (
    CheckOption("LichessDB_Masters", "masters"),
    CheckOption("LichessDB_Bullet", "bullet"),
    CheckOption("LichessDB_Blitz", "blitz"),
    CheckOption("LichessDB_Rapid", "rapid"),
    CheckOption("LichessDB_Classical", "classical"),
    CheckOption("LichessDB_Rating_1600_1800", "rating_1600"),
    CheckOption("LichessDB_Rating_1800_2000", "rating_1800"),
    CheckOption("LichessDB_Rating_2000_2200", "rating_2000"),
    CheckOption("LichessDB_Rating_2200_2500", "rating_2200"),
    CheckOption("LichessDB_Rating_Above_2500", "rating_2500"),
    SpinOption("LichessDB_Games_GT", "games_min", 1, 1_000_000_000),
    SpinOption("LichessDB_Games_Percent_GT", "games_percent_min", 0, 100),
    SpinOption("LichessDB_Score_GT", "score_min", 0, 100),
    ComboOption("LichessDB_Sort_By", "sort_by", SortBy),
    SpinOption("LichessDB_Variants", "variants", 0, 50),
    ComboOption("LichessDB_Variant_Weight", "weight_by", WeightBy),
)

OPTIONS_BY_NAME: Dict[str, UciOption] = {option.name: option for option in UCI_OPTIONS}


def find_option(name: str) -> Optional[UciOption]:
    return OPTIONS_BY_NAME.get(name)


def advertise_options(options: Optional[BookOptions] = None) -> Tuple[str, ...]:
    """Render one ``option name ...`` line per book option."""
    current = options or BookOptions()
    return tuple(option.advertise(getattr(current, option.field)) for option in UCI_OPTIONS)


def apply_option(options: BookOptions, option: UciOption, value: str) -> BookOptions:
    """Return ``options`` with ``option`` set to ``value``.

    Values the option does not accept leave ``options`` untouched.
    """
    parsed: Any = option.parse(value)
    if parsed is None:
        return options
    return replace(options, **{option.field: parsed})
