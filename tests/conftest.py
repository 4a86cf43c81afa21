from datetime import date
from xml.sax.saxutils import quoteattr

import pytest

from hbquery.loader import load


def day(d: date) -> int:
    """HomeBank day number of a date."""
    return d.toordinal()


def el(tag: str, **attrs) -> str:
    body = " ".join(f"{k}={quoteattr(str(v))}" for k, v in attrs.items())
    return f"<{tag} {body}/>"


def xhb(*elements: str, version: str = "1.4") -> str:
    lines = "\n".join(elements)
    return f'<?xml version="1.0"?>\n<homebank v="{version}" d="050504">\n{lines}\n</homebank>\n'


# Food (root) and Bills:Food share a leaf name; the child is declared before its parent
SCENARIO = xhb(
    el("properties", title="Household", curr=1),
    el("cur", key=1, flags=0, iso="USD", name="US Dollar", symb="$", syprf=1, frac=2),
    el("account", key=1, pos=1, type=1, curr=1, name="Checking", initial="100"),
    el("pay", key=1, name="Grocer"),
    el("cat", key=3, parent=2, flags=1, name="Food"),
    el("cat", key=1, flags=0, name="Food", b4="15"),
    el("cat", key=2, flags=0, name="Bills"),
    el("ope", date=day(date(2022, 4, 10)), amount="10", account=1, paymode=3, st=1,
       payee=1, category=1, wording="Weekly shop"),
    el("ope", date=day(date(2022, 4, 15)), amount="20", account=1, paymode=4, st=0,
       category=3, wording="Utility food"),
    el("ope", date=day(date(2022, 5, 2)), amount="5", account=1, paymode=3, st=0,
       wording="Cash"),
)


@pytest.fixture
def write_xhb(tmp_path):
    def _write(text: str, name: str = "db.xhb"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def scenario(write_xhb):
    return load(write_xhb(SCENARIO))
