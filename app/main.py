import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from datetime import date

import pandas as pd
import plotly.express as px
import streamlit as st

from hbquery.aggregate import Interval, UNCATEGORIZED, account_balance, budget_report, review, sum_amounts
from hbquery.categories import resolve_category
from hbquery.config import load_config
from hbquery.domain import PayMode, TransactionType
from hbquery.errors import ConfigError, DecodeError
from hbquery.loader import DEFAULT_FRAC, load
from hbquery.query import FilterSpec, filter_transactions

st.set_page_config(page_title="HomeBank Review", layout="wide")

try:
    config = load_config(os.getenv("HBQUERY_CONFIG"))
except ConfigError as e:
    st.error(str(e))
    st.stop()

logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("hbquery.app")


@st.cache_resource
def get_model(path: str):
    return load(path)


db_path = st.sidebar.text_input("Database file", value=str(config.path or ""))
if not db_path:
    st.info("Set `path` in the config file or enter a HomeBank file above")
    st.stop()

try:
    model = get_model(db_path)
except DecodeError as e:
    logger.error("could not load %s: %s", db_path, e)
    st.error(f"Could not parse the database file: {e}")
    st.stop()

base = model.currencies.get(model.properties.currency)
frac = base.frac if base else DEFAULT_FRAC
symbol = base.symbol if base else ""


def money(minor: int) -> float:
    return minor / 10 ** frac


if model.warnings:
    st.sidebar.warning(f"{len(model.warnings)} dangling references were ignored")

menu = st.sidebar.radio("Menu", ["🏠 Overview", "🧾 Transactions", "📑 Review", "🎯 Budget"])

if menu == "🏠 Overview":
    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric("Accounts", len(model.accounts))
    with k2:
        st.metric("Categories", len(model.categories))
    with k3:
        st.metric("Transactions", len(model.transactions))

    accounts = sorted(model.accounts.values(), key=lambda a: a.name)
    balances = [money(account_balance(model, a.key)) for a in accounts]
    fig_bal = px.bar(
        x=[a.name for a in accounts],
        y=balances,
        labels={"x": "Account", "y": f"Balance {symbol}"},
        title="Account Balances",
        template="plotly_dark",
    )
    st.plotly_chart(fig_bal, use_container_width=True)

elif menu == "🧾 Transactions":
    today = date.today()
    c1, c2, c3 = st.columns(3)
    with c1:
        since = st.date_input("From", value=Interval.current_month(today).since)
    with c2:
        until = st.date_input("To", value=today)
    with c3:
        cat_query = st.text_input("Category (Parent:Child)", value="")
    text = st.text_input("Text in memo, info, tags or payee", value="")
    types = st.multiselect("Type", [t.value for t in TransactionType], default=[])
    modes = st.multiselect("Payment mode", [m.name for m in PayMode], default=[])

    spec = FilterSpec(
        category=resolve_category(model, cat_query) if cat_query else None,
        since=since,
        until=until,
        text=text or None,
        type=frozenset(TransactionType(t) for t in types) or None,
        paymode=frozenset(PayMode[m] for m in modes) or None,
    )
    matches = filter_transactions(model, spec)

    rows = [
        {
            "date": t.date,
            "amount": money(t.amount),
            "category": " / ".join(model.paths[c] if c else UNCATEGORIZED for c, _ in t.lines()),
            "payee": model.payee(t.payee).map(lambda p: p.name).get_or_else(""),
            "account": model.account(t.account).map(lambda a: a.name).get_or_else(""),
            "type": t.type.value,
            "memo": t.memo,
        }
        for t in matches
    ]
    if cat_query and not spec.category:
        st.info(f"No category named {cat_query!r}")
    st.metric("Total", f"{money(sum_amounts(matches)):,.{frac}f} {symbol}")
    st.dataframe(pd.DataFrame(rows), use_container_width=True)

elif menu == "📑 Review":
    period = st.text_input("Month (YYYY-MM)", value=date.today().strftime("%Y-%m"))
    hide_empty = st.checkbox("Hide categories without transactions", value=True)
    try:
        interval = Interval.month(period)
    except ValueError:
        st.error("Month must look like 2022-04")
        st.stop()

    totals = review(model, FilterSpec(since=interval.since, until=interval.until), include_empty=not hide_empty)
    df_rev = pd.DataFrame([{"Category": k, "Amount": money(v)} for k, v in totals.items()])
    if df_rev.empty:
        st.info("No transactions in this month")
    else:
        fig = px.bar(df_rev, x="Category", y="Amount", title=f"Totals for {period}", template="plotly_dark")
        st.plotly_chart(fig, use_container_width=True)
        st.table(df_rev)

else:
    period = st.text_input("Month (YYYY-MM)", value=date.today().strftime("%Y-%m"))
    try:
        interval = Interval.month(period)
    except ValueError:
        st.error("Month must look like 2022-04")
        st.stop()

    report = budget_report(model, interval)
    if not report:
        st.info("No budgets defined")
    st.subheader("Budget usage")
    for path, progress in report.items():
        st.write(f"**{path}**: {money(progress.actual):,.{frac}f} / {money(progress.allocated):,.{frac}f} {symbol}")
        if progress.has_budget:
            st.progress(min(1.0, max(0.0, progress.ratio)))
        else:
            st.caption("no budget set")
