"""Per-module color assignment for graph vertices and the legend."""

from __future__ import annotations

import random
from typing import NamedTuple

from typegraph.models import LegendEntry


class NamedColor(NamedTuple):
    name: str
    hex: str


# First modules get these, in order
PRIMARY_PALETTE: tuple[NamedColor, ...] = (
    NamedColor("DarkCyan", "#008B8B"),
    NamedColor("MediumVioletRed", "#C71585"),
    NamedColor("Green", "#008000"),
    NamedColor("Yellow", "#FFFF00"),
    NamedColor("Tomato", "#FF6347"),
    NamedColor("Aqua", "#00FFFF"),
    NamedColor("DarkOrchid", "#9932CC"),
    NamedColor("Navy", "#000080"),
)

EXTENDED_PALETTE: tuple[NamedColor, ...] = (
    NamedColor("Transparent", "#00FFFFFF"),
    NamedColor("White", "#FFFFFF"),
    NamedColor("Black", "#000000"),
    NamedColor("AliceBlue", "#F0F8FF"),
    NamedColor("Aquamarine", "#7FFFD4"),
    NamedColor("Bisque", "#FFE4C4"),
    NamedColor("BlueViolet", "#8A2BE2"),
    NamedColor("Brown", "#A52A2A"),
    NamedColor("BurlyWood", "#DEB887"),
    NamedColor("CadetBlue", "#5F9EA0"),
    NamedColor("Chartreuse", "#7FFF00"),
    NamedColor("Chocolate", "#D2691E"),
    NamedColor("Coral", "#FF7F50"),
    NamedColor("CornflowerBlue", "#6495ED"),
    NamedColor("Crimson", "#DC143C"),
    NamedColor("DarkGoldenrod", "#B8860B"),
    NamedColor("DarkKhaki", "#BDB76B"),
    NamedColor("DarkOliveGreen", "#556B2F"),
    NamedColor("DarkOrange", "#FF8C00"),
    NamedColor("DarkSalmon", "#E9967A"),
    NamedColor("DarkSeaGreen", "#8FBC8F"),
    NamedColor("DarkSlateBlue", "#483D8B"),
    NamedColor("DeepPink", "#FF1493"),
    NamedColor("DeepSkyBlue", "#00BFFF"),
    NamedColor("DodgerBlue", "#1E90FF"),
    NamedColor("Firebrick", "#B22222"),
    NamedColor("ForestGreen", "#228B22"),
    NamedColor("Gold", "#FFD700"),
    NamedColor("Goldenrod", "#DAA520"),
    NamedColor("HotPink", "#FF69B4"),
    NamedColor("IndianRed", "#CD5C5C"),
    NamedColor("Khaki", "#F0E68C"),
    NamedColor("LightCoral", "#F08080"),
    NamedColor("LightSkyBlue", "#87CEFA"),
    NamedColor("LimeGreen", "#32CD32"),
    NamedColor("Maroon", "#800000"),
    NamedColor("MediumSeaGreen", "#3CB371"),
    NamedColor("Olive", "#808000"),
    NamedColor("Orange", "#FFA500"),
    NamedColor("Orchid", "#DA70D6"),
    NamedColor("Peru", "#CD853F"),
    NamedColor("Plum", "#DDA0DD"),
    NamedColor("RoyalBlue", "#4169E1"),
    NamedColor("SaddleBrown", "#8B4513"),
    NamedColor("Salmon", "#FA8072"),
    NamedColor("SeaGreen", "#2E8B57"),
    NamedColor("Sienna", "#A0522D"),
    NamedColor("SlateBlue", "#6A5ACD"),
    NamedColor("SteelBlue", "#4682B4"),
    NamedColor("Teal", "#008080"),
    NamedColor("Turquoise", "#40E0D0"),
    NamedColor("Violet", "#EE82EE"),
    NamedColor("YellowGreen", "#9ACD32"),
)

_REJECTED = {"Transparent", "White", "Black"}


class ColorAssigner:
    """Ordered mapping from module id to color, filled in first-seen order."""

    def __init__(self, seed: int | None = None):
        self._colors: dict[str, NamedColor] = {}
        self._random = random.Random(seed)

    def __len__(self) -> int:
        return len(self._colors)

    def color_for(self, module_id: str) -> NamedColor:
        color = self._colors.get(module_id)
        if color is None:
            color = self._next_color()
            self._colors[module_id] = color
        return color

    def legend(self) -> list[LegendEntry]:
        return [
            LegendEntry(module_id=module_id, color=color.hex, color_name=color.name)
            for module_id, color in self._colors.items()
        ]

    def _next_color(self) -> NamedColor:
        if len(self._colors) < len(PRIMARY_PALETTE):
            return PRIMARY_PALETTE[len(self._colors)]

        used = set(self._colors.values())
        candidates = [c for c in EXTENDED_PALETTE if c.name not in _REJECTED and c not in used]
        if not candidates:
            # Palette exhausted: reuse extended colors round-robin
            usable = [c for c in EXTENDED_PALETTE if c.name not in _REJECTED]
            return usable[(len(self._colors) - len(PRIMARY_PALETTE)) % len(usable)]

        while True:
            color = self._random.choice(EXTENDED_PALETTE)
            if color.name not in _REJECTED and color not in used:
                return color
