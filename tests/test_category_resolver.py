"""Tests for category resolution."""

import pytest

from mailstock.models.enums import Category
from mailstock.services.category_resolver import (
    CategoryResolver,
    lookup_category,
    normalize_label,
    normalize_location,
)


@pytest.mark.parametrize(
    "label",
    ["declarations", "Déclaration", "Déclarations", "DECLARATIONS", "Declarations"],
)
def test_declaration_aliases(label):
    """Accented, singular and display spellings resolve to the same key."""
    assert lookup_category(label) == Category.DECLARATIONS
    assert CategoryResolver().resolve(label) == Category.DECLARATIONS


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Règlements", Category.REGLEMENTS),
        ("reglement", Category.REGLEMENTS),
        ("Reglements", Category.REGLEMENTS),
        ("Mails simples", Category.MAILS_SIMPLES),
        ("mails_simples", Category.MAILS_SIMPLES),
        ("MailSimple", Category.MAILS_SIMPLES),
    ],
)
def test_other_aliases(label, expected):
    """Slugs, display labels and import spellings share one key."""
    assert lookup_category(label) == expected


def test_unmapped_location_uses_default():
    """Unknown locations fall back to the default category, no error."""
    resolver = CategoryResolver(default=Category.MAILS_SIMPLES)

    assert resolver.resolve("Inbox/Newsletters") == Category.MAILS_SIMPLES
    assert resolver.resolve("") == Category.MAILS_SIMPLES
    assert resolver.resolve(None) == Category.MAILS_SIMPLES


def test_no_guessing_beyond_alias_table():
    """A location merely containing an alias is not matched."""
    assert lookup_category("declarations 2024") is None
    assert CategoryResolver().resolve("Inbox/Déclarations") == Category.MAILS_SIMPLES


def test_configured_locations():
    """Configured locations map through the alias table, path spelling insensitive."""
    resolver = CategoryResolver(
        {
            "\\\\Shared Box\\Inbox\\Déclarations": "Déclarations",
            "//Shared Box/Inbox/Paiements": "reglements",
        }
    )

    assert resolver.resolve("//shared box/inbox/declarations/") == Category.DECLARATIONS
    assert resolver.resolve("\\\\Shared Box\\Inbox\\Paiements") == Category.REGLEMENTS


def test_configured_unknown_category_is_skipped(caplog):
    """A mapping to an unknown category is ignored with a warning."""
    resolver = CategoryResolver({"Inbox/Other": "urgent"})

    assert resolver.resolve("Inbox/Other") == Category.MAILS_SIMPLES
    assert "unknown category" in caplog.text


def test_normalization():
    """Case, diacritics and separators are folded."""
    assert normalize_label("  Mails__Simples ") == "mails simples"
    assert normalize_label("Règlements") == "reglements"
    assert normalize_location("\\\\Box\\Inbox\\Déclarations\\") == "box/inbox/declarations"
