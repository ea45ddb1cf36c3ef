"""
Message Translation

A small phrase book used to turn error codes into human readable
messages. Phrases are looked up by dotted key (``validation.not_unique``)
in the requested locale and formatted with ``str.format`` style
placeholders (``{property}``).
"""

from typing import Any, Dict, Mapping, Optional, Union
from pathlib import Path
import json
import logging

logger = logging.getLogger(__name__)


class _SafeParameters(dict):
    """Leaves unknown placeholders untouched instead of raising"""

    def __missing__(self, key):
        return "{" + key + "}"


class Locale:
    """
    Phrase book keyed by locale name.

    Usage:
        locale = Locale(phrases={"en": {"validation": {"not_unique": "{property} is taken"}}})
        locale.translate("validation.not_unique", {"property": "Email"})
    """

    def __init__(self, locale: str = "en", phrases: Optional[Dict[str, Mapping]] = None):
        self.locale = locale
        self._phrases: Dict[str, Dict[str, str]] = {}
        for name, tree in (phrases or {}).items():
            self.add_phrases(name, tree)

    def add_phrases(self, locale: str, phrases: Mapping) -> None:
        """Merge a (possibly nested) phrase mapping into a locale"""
        flat = self._phrases.setdefault(locale, {})
        flat.update(self._flatten(phrases))

    def has_phrase(self, key: str, locale: Optional[str] = None) -> bool:
        return key in self._phrases.get(locale or self.locale, {})

    def translate(self, key: str, parameters: Optional[Mapping[str, Any]] = None,
                  locale: Optional[str] = None, fallback: Optional[str] = None) -> str:
        """
        Translate a phrase key.

        Args:
            key: Dotted phrase key
            parameters: Placeholder values
            locale: Locale name, defaults to the current one
            fallback: Phrase used when the key is unknown

        Returns:
            The formatted phrase, or the key itself when nothing matched
        """
        phrase = self._phrases.get(locale or self.locale, {}).get(key)
        if phrase is None:
            phrase = fallback
        if phrase is None:
            return key

        return phrase.format_map(_SafeParameters(parameters or {}))

    # The translator contract is a plain callable
    __call__ = translate

    @classmethod
    def from_file(cls, path: Union[str, Path], locale: Optional[str] = None) -> 'Locale':
        """
        Load a phrase file (JSON or YAML). The locale name defaults to the
        file stem, i.e. ``en.yml`` holds the ``en`` phrases.
        """
        path = Path(path)
        if path.suffix == ".json":
            with open(path) as f:
                phrases = json.load(f)
        elif path.suffix in (".yml", ".yaml"):
            import yaml
            with open(path) as f:
                phrases = yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported phrase file format: {path.suffix}")

        name = locale or path.stem
        logger.debug(f"Loaded {name} phrases from {path}")
        return cls(locale=name, phrases={name: phrases})

    @classmethod
    def _flatten(cls, tree: Mapping, prefix: str = "") -> Dict[str, str]:
        flat: Dict[str, str] = {}
        for key, value in tree.items():
            full_key = f"{prefix}{key}"
            if isinstance(value, Mapping):
                flat.update(cls._flatten(value, f"{full_key}."))
            else:
                flat[full_key] = str(value)
        return flat


__all__ = ["Locale"]
