"""UNO game engine with transactional state, stacking penalties and computer players."""

from unoengine.service import UnoEngine

__version__ = "0.1.0"

__all__ = ["UnoEngine", "__version__"]
