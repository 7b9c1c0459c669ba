"""Mission Map Builder: a scene editor for tabletop-wargame mission maps."""

__version__ = "0.1.0"
