# FontIconLibrary.py
# Status glyphs for log lines and pygame fonts for the camera tile overlay.

import os
import json
import logging
import re
import pygame
from pathlib import Path
from typing import Dict

ENV_VAR = "CAMERAVIEW_ICONS"

_BUILTIN_ICONS: Dict[str, Dict[str, str]] = {
    "status_alerts": {
        "default": "ℹ️",
        "s": "✅",
        "f": "❌",
        "wn": "⚠️",
        "critical": "💣",
        "done": "🏁",
        "skull": "☠️",
    },
    "net": {"default": "🌐", "timeout": "⏱️"},
}

# readable names -> shortcodes, keyed by canonical category
_ALIASES: Dict[str, Dict[str, str]] = {
    "statusalerts": {
        "ok": "s", "success": "s",
        "fail": "f", "error": "f",
        "warn": "wn", "warning": "wn",
        "fatal": "critical", "finish": "done",
        "info": "default",
    },
}


def _canon(text: str) -> str:
    """'Status-Alerts' / 'status_alerts' / 'status alerts' -> 'statusalerts'."""
    return re.sub(r"[\s_\-]", "", str(text).lower())


class IconLibrary:
    """
    Glyph lookup by (category, name) with a builtin table. An icons.json in the
    working directory (or $CAMERAVIEW_ICONS) may override any category:
    {
      "Defaults": {"default": "*"},
      "status_alerts": {"s": "[ok]", "f": "[fail]"}
    }
    Category and glyph names are matched case-insensitively.
    """

    def __init__(self):
        self.fallback = "•"
        self._icons: Dict[str, Dict[str, str]] = {}
        for category, glyphs in _BUILTIN_ICONS.items():
            self._merge(category, glyphs)
        self._load_overrides()

    def _merge(self, category: str, glyphs: Dict[str, str]) -> None:
        table = self._icons.setdefault(_canon(category), {})
        table.update({str(k).lower(): v for k, v in glyphs.items()})

    def _load_overrides(self) -> None:
        for candidate in filter(None, (os.environ.get(ENV_VAR), "./icons.json")):
            path = Path(candidate)
            if not path.is_file():
                continue
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                fallback = (raw.get("Defaults") or {}).get("default")
                if isinstance(fallback, str) and fallback:
                    self.fallback = fallback
                for category, glyphs in raw.items():
                    if category != "Defaults" and isinstance(glyphs, dict):
                        self._merge(category, glyphs)
            except (OSError, ValueError, AttributeError) as e:
                logging.warning(f"[IconLibrary] Failed loading {path}: {e}")
                continue
            logging.debug(f"[IconLibrary] icon overrides from {path}")
            return

    def get_icon(self, category: str, name: str) -> str:
        if not category or not name:
            return self.fallback
        cat_key = _canon(category)
        table = self._icons.get(cat_key)
        if table is None:
            return self.fallback
        key = str(name).lower()
        if key not in table:
            key = _ALIASES.get(cat_key, {}).get(key, key)
        return table.get(key, table.get("default", self.fallback))

    def ilog(self, level="info", message="", category="", name="", num_icon=1) -> None:
        """logging.log with a glyph prefix; level is a name such as 'warning'."""
        levelno = getattr(logging, str(level).upper(), logging.INFO)
        logging.log(levelno, f"{self.get_icon(category, name) * num_icon} {message}")


class FontLibrary:
    """Hands out pygame's bundled font at the sizes of a named schema."""

    SCHEMAS: Dict[str, Dict[str, int]] = {
        # camera tile overlays: window title and the frame counter under it
        "tile_overlay": {"label": 28, "stats": 18},
    }

    def __init__(self):
        if not pygame.font.get_init():
            pygame.font.init()

    def get_font_size_list(self, name: str = "tile_overlay") -> Dict[str, int]:
        """Copy of a size schema."""
        if name not in self.SCHEMAS:
            raise KeyError(f"Unknown font schema '{name}', known: {sorted(self.SCHEMAS)}")
        return dict(self.SCHEMAS[name])

    def get_loaded_fonts(self, type: str = "tile_overlay") -> Dict[str, pygame.font.Font]:
        """dict[name -> pygame.font.Font] for a schema."""
        return {key: pygame.font.Font(None, px) for key, px in self.get_font_size_list(type).items()}
