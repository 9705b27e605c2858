"""Loading of the INI configuration shared by the servers."""

from __future__ import annotations

import configparser
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.ini"


class SectionInfo(Mapping):
    """Key/value pairs of one INI section; missing keys read as ``""``."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(values or {})

    def __getitem__(self, key: str) -> str:
        return self._values.get(key, "")

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def get(self, key: str, default: str = "") -> str:
        return self._values.get(key, default)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"SectionInfo({self._values!r})"


class ConfigManager:
    """All sections of a configuration; missing sections read as empty."""

    def __init__(self, sections: Mapping[str, Mapping[str, str]] | None = None) -> None:
        self._sections: dict[str, SectionInfo] = {
            name: SectionInfo(values) for name, values in (sections or {}).items()
        }

    def __getitem__(self, section: str) -> SectionInfo:
        return self._sections.get(section, SectionInfo())

    def __contains__(self, section: object) -> bool:
        return section in self._sections

    def sections(self) -> list[str]:
        """Section names in sorted order."""
        return sorted(self._sections)

    @classmethod
    def from_file(cls, path: str | Path) -> "ConfigManager":
        """Read an INI file; raises ``FileNotFoundError`` if it is missing."""
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # keys are case-sensitive
        with open(path, encoding="utf-8") as handle:
            parser.read_file(handle)
        manager = cls({name: dict(parser[name]) for name in parser.sections()})
        logger.debug("Config path: %s", path)
        for name in manager.sections():
            logger.debug("[%s]", name)
            for key, value in manager[name].items():
                logger.debug("%s=%s", key, value)
        return manager


def load_config(path: str | Path | None = None) -> ConfigManager:
    """Load ``path``, or ``config.ini`` in the current directory."""
    if path is None:
        path = Path.cwd() / CONFIG_FILE_NAME
    return ConfigManager.from_file(path)