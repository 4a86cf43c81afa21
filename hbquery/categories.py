from typing import Iterator, Optional

from hbquery.domain import Category
from hbquery.loader import Model

SEPARATOR = ":"


def full_path(model: Model, key: int) -> str:
    return model.paths[key]


def roots(model: Model) -> tuple[Category, ...]:
    return tuple(c for c in model.categories.values() if c.parent is None)


def children(model: Model, key: Optional[int]) -> tuple[Category, ...]:
    return tuple(c for c in model.categories.values() if c.parent == key)


def descendants(model: Model, key: int) -> tuple[Category, ...]:
    direct = children(model, key)
    result = direct
    for child in direct:
        result += descendants(model, child.key)
    return result


def _ancestor_names(model: Model, cat: Category) -> Iterator[str]:
    node = cat.parent
    while node is not None:
        parent = model.categories[node]
        yield parent.name
        node = parent.parent


def _matches(model: Model, cat: Category, segments: list[str]) -> bool:
    if cat.name != segments[-1]:
        return False
    wanted = reversed(segments[:-1])
    ancestors = _ancestor_names(model, cat)
    return all(name == next(ancestors, None) for name in wanted)


def resolve_category(model: Model, query: str, include_children: bool = False) -> frozenset[int]:
    """Keys of every category named by `query`.

    "Child" matches any category with that name at any depth; "Parent:Child"
    only those whose parent is named "Parent". Names compare exactly. Several
    categories can share a name, so callers aggregate over the whole set; an
    empty set means nothing matched.
    """
    segments = query.split(SEPARATOR)
    found = {c.key for c in model.categories.values() if _matches(model, c, segments)}
    if include_children:
        for key in list(found):
            found.update(c.key for c in descendants(model, key))
    return frozenset(found)
