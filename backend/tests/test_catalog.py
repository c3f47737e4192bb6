from storefront.services.catalog import item_id_for, slugify
from storefront.utils.quantity import clamp_quantity


def test_clean_slug_used_verbatim():
    assert item_id_for("Forest Ember", slug="forest-ember") == "forest-ember"


def test_name_based_ids_are_stable_and_distinct():
    first = item_id_for("Forest Ember")
    assert first == item_id_for("Forest Ember")
    assert first.startswith("forest-ember-")
    # same slug text, different names
    assert item_id_for("Forest Ember!") != first
    assert item_id_for("forest ember") != first


def test_messy_slug_is_hashed():
    assert item_id_for("X", slug="Forest Ember").startswith("forest-ember-")


def test_name_without_slug_characters():
    assert len(item_id_for("★★★")) == 8


def test_slugify():
    assert slugify("  Autumn Whispers (8oz) ") == "autumn-whispers-8oz"


def test_clamp_quantity():
    assert clamp_quantity(3) == 3
    assert clamp_quantity(2.9) == 2
    assert clamp_quantity("4") == 4
    assert clamp_quantity(0) == 1
    assert clamp_quantity(-2) == 1
    assert clamp_quantity(None) == 1
    assert clamp_quantity("abc") == 1
    assert clamp_quantity(float("inf")) == 1
    assert clamp_quantity(True) == 1
