"""Category resolution from source locations via an explicit alias table."""

import logging
import re
import unicodedata
from collections.abc import Mapping

from mailstock.models.enums import Category

logger = logging.getLogger(__name__)

_SEPARATOR_RUN = re.compile(r"[\s_\-]+")

# Every spelling accepted for each category. Keys are normalized on load, so
# accents and case here are documentation only.
CATEGORY_ALIASES: dict[Category, tuple[str, ...]] = {
    Category.DECLARATIONS: (
        "declarations",
        "declaration",
        "Déclarations",
        "Déclaration",
        "Declarations",
    ),
    Category.REGLEMENTS: (
        "reglements",
        "reglement",
        "Règlements",
        "Règlement",
        "Reglements",
    ),
    Category.MAILS_SIMPLES: (
        "mails_simples",
        "mails simples",
        "Mails simples",
        "mail simple",
        "MailSimple",
        "mailsimple",
        "general",
    ),
}


def normalize_label(value: str) -> str:
    """Fold case and diacritics and collapse separators.

    "Déclarations", "DECLARATIONS" and "declarations" all normalize to
    "declarations"; "mails_simples" and "Mails  simples" to "mails simples".
    """
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _SEPARATOR_RUN.sub(" ", stripped.casefold()).strip()


def normalize_location(value: str) -> str:
    """Normalize a folder path: unify separators, drop trailing ones, fold labels."""
    path = value.replace("\\", "/").strip().rstrip("/")
    parts = [normalize_label(part) for part in path.split("/")]
    return "/".join(part for part in parts if part)


_ALIAS_INDEX: dict[str, Category] = {
    normalize_label(alias): category
    for category, aliases in CATEGORY_ALIASES.items()
    for alias in (*aliases, category.value, category.label)
}


def lookup_category(label: str | Category | None) -> Category | None:
    """Resolve a label strictly through the alias table, None if unknown."""
    if label is None:
        return None
    if isinstance(label, Category):
        return label
    return _ALIAS_INDEX.get(normalize_label(label))


class CategoryResolver:
    """Maps source locations to categories, falling back to a default."""

    def __init__(
        self,
        location_map: Mapping[str, str | Category] | None = None,
        default: Category = Category.MAILS_SIMPLES,
    ):
        self.default = default
        self._locations: dict[str, Category] = {}
        for location, label in (location_map or {}).items():
            category = lookup_category(label)
            if category is None:
                logger.warning(
                    f"Location '{location}' configured with unknown category '{label}', ignoring"
                )
                continue
            self._locations[normalize_location(location)] = category

    def resolve(self, location: str | None) -> Category:
        """Return the category for a location; unmapped locations get the default."""
        if not location:
            return self.default
        normalized = normalize_location(location)
        if normalized in self._locations:
            return self._locations[normalized]
        return _ALIAS_INDEX.get(normalized, self.default)

    def lookup(self, label: str | Category | None) -> Category | None:
        return lookup_category(label)
