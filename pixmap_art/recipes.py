"""Named operation chains for common pixmap effects.

A recipe is an ordered list of operation strings (see
:func:`pixmap_art.pipeline.parse_operation`) applied left to right:

- **gray-sobel-invert**: dark outlines on white, like a pencil sketch
- **gray-invert-sobel**: bright outlines on black
- **glow**: bloom around highlights brighter than 200
- **swirl-swirl**: channels rotated twice (red takes blue)

Example Usage
-------------

    from pixmap_art import RECIPES

    recipe = RECIPES["gray-sobel-invert"]
    recipe.operations  # ("grayscale", "sobel-edge", "invert")
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Recipe:
    """Named chain of operations.

    Attributes:
        name: Recipe identifier used on the command line.
        operations: Operation strings applied in order.
        description: One-line summary for ``--help`` output.
    """

    name: str
    operations: Tuple[str, ...]
    description: str = ""

    def describe(self) -> str:
        chain = " -> ".join(self.operations)
        if self.description:
            return f"{self.name}: {self.description} ({chain})"
        return f"{self.name}: {chain}"


def _recipe(name: str, *operations: str, description: str = "") -> Recipe:
    return Recipe(name=name, operations=tuple(operations), description=description)


RECIPES: Dict[str, Recipe] = {
    recipe.name: recipe
    for recipe in (
        _recipe("grayscale", "grayscale", description="Luma-weighted gray"),
        _recipe("invert", "invert", description="Photographic negative"),
        _recipe("red-channel", "extract-channel:1", description="Red channel only"),
        _recipe("swirl-swirl", "swirl", "swirl", description="Channels rotated twice"),
        _recipe("blur", "blur", description="3x3 box blur"),
        _recipe("glow", "glow:200", description="Bloom around bright highlights"),
        _recipe("sobel", "sobel-edge", description="Edge magnitude"),
        _recipe(
            "gray-sobel-invert",
            "grayscale",
            "sobel-edge",
            "invert",
            description="Dark outlines on white",
        ),
        _recipe(
            "gray-invert-sobel",
            "grayscale",
            "invert",
            "sobel-edge",
            description="Bright outlines on black",
        ),
        _recipe("mosaic", "mosaic", description="Coarse 3x3 mosaic"),
        _recipe("flip-vertical", "flip-vertical", description="Mirror left to right"),
        _recipe("rotate", "rotate90", description="Quarter turn counter-clockwise"),
    )
}


def resolve_recipe(name: str) -> Recipe:
    """Look up a recipe by name.

    Raises:
        KeyError: If no recipe has that name; the message lists the choices.
    """
    try:
        return RECIPES[name]
    except KeyError:
        available = ", ".join(sorted(RECIPES))
        raise KeyError(f"Unknown recipe '{name}'. Available recipes: {available}") from None


__all__ = [
    "RECIPES",
    "Recipe",
    "resolve_recipe",
]
