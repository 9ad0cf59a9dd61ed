from __future__ import annotations

from dataclasses import dataclass, field

from fixedrec.runtime.converters import Converter


@dataclass
class CompilerConfig:
    pad_short_lines: bool = False  # right-pad lines shorter than the widest field
    fill_char: str = " "
    converters: dict[str, Converter] = field(default_factory=dict)  # extra named types

    def __post_init__(self) -> None:
        if len(self.fill_char) != 1:
            raise ValueError(f"fill_char must be a single character, got {self.fill_char!r}")
