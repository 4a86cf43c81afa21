from conftest import el, xhb
from hbquery.categories import children, descendants, full_path, resolve_category, roots
from hbquery.decoder import decode
from hbquery.loader import build_model


def deep_model():
    return build_model(decode(xhb(
        el("cat", key=1, name="Home"),
        el("cat", key=2, name="Repairs", parent=1),
        el("cat", key=3, name="Parts", parent=2),
        el("cat", key=4, name="Car"),
        el("cat", key=5, name="Repairs", parent=4),
        el("cat", key=6, name="Parts", parent=5),
    ).encode()))


def key_of(model, path):
    return next(k for k, p in model.paths.items() if p == path)


def test_leaf_name_matches_every_depth(scenario):
    assert resolve_category(scenario, "Food") == {key_of(scenario, "Food"), key_of(scenario, "Bills:Food")}


def test_parent_child_path_disambiguates(scenario):
    by_path = resolve_category(scenario, "Bills:Food")
    assert by_path == {key_of(scenario, "Bills:Food")}
    assert by_path != resolve_category(scenario, "Food")


def test_no_match_is_empty(scenario):
    assert resolve_category(scenario, "Travel") == frozenset()
    assert resolve_category(scenario, "Food:Bills") == frozenset()


def test_matching_is_case_sensitive(scenario):
    assert resolve_category(scenario, "food") == frozenset()
    assert resolve_category(scenario, "bills:Food") == frozenset()


def test_root_has_no_parent_to_match(scenario):
    assert resolve_category(scenario, ":Food") == frozenset()


def test_longer_paths_match_ancestors():
    model = deep_model()
    assert resolve_category(model, "Parts") == {3, 6}
    assert resolve_category(model, "Repairs:Parts") == {3, 6}
    assert resolve_category(model, "Car:Repairs:Parts") == {6}
    assert resolve_category(model, "Home:Parts") == frozenset()


def test_include_children():
    model = deep_model()
    assert resolve_category(model, "Home", include_children=True) == {1, 2, 3}
    assert resolve_category(model, "Repairs", include_children=True) == {2, 3, 5, 6}


def test_full_path():
    model = deep_model()
    assert full_path(model, 6) == "Car:Repairs:Parts"
    assert full_path(model, 4) == "Car"


def test_tree_walks():
    model = deep_model()
    assert {c.key for c in roots(model)} == {1, 4}
    assert [c.key for c in children(model, 1)] == [2]
    assert [c.name for c in descendants(model, 1)] == ["Repairs", "Parts"]
    assert descendants(model, 3) == ()
