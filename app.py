"""
app.py
Streamlit Gym Membership Dashboard.
Run: streamlit run app.py
"""

from __future__ import annotations

import logging
import os
from datetime import date

import streamlit as st

import utils
from csv_codec import CSV_HEADER, EXPORT_FILENAME, members_to_csv_bytes
from db import KeyValueStore
from members import MemberCollection, summarize
from models import FILTER_ALL, MEMBERSHIP_TYPES, STATUSES, MemberInput

logging.basicConfig(
    level=os.getenv("GYM_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(page_title="B7 Gym Dashboard", layout="wide")


def init_once():
    # Load the collection once per browser session
    if "collection" not in st.session_state:
        st.session_state.collection = MemberCollection.load(KeyValueStore())
    if "edit_member_id" not in st.session_state:
        st.session_state.edit_member_id = None
    if "flash" not in st.session_state:
        st.session_state.flash = None


def collection() -> MemberCollection:
    return st.session_state.collection


def show_outcome(outcome):
    if outcome.ok:
        for msg in outcome.messages:
            st.success(msg)
    else:
        for msg in outcome.messages:
            st.error(msg)


def flash_and_rerun(outcome):
    # Messages set right before st.rerun() would be wiped; show them on the next run
    st.session_state.flash = outcome
    st.rerun()


def show_flash():
    if st.session_state.flash is not None:
        show_outcome(st.session_state.flash)
        st.session_state.flash = None


def sidebar_filters():
    with st.sidebar:
        st.title("🏋️ B7 Gym")
        st.caption("Manage members, track subscriptions")

        stats = summarize(collection().members)
        c1, c2 = st.columns(2)
        c1.metric("Total", stats["total"])
        c2.metric("Active", stats["active"])
        c1.metric("Expired", stats["expired"])
        c2.metric("Expiring ≤ 7 days", stats["expiring_soon"])

        st.divider()
        st.subheader("Search & Filters")
        text = st.text_input("Search by name or phone")
        type_filter = st.selectbox("Type", [FILTER_ALL] + MEMBERSHIP_TYPES)
        status_filter = st.selectbox("Status", [FILTER_ALL] + STATUSES)
    return text, type_filter, status_filter


def member_form(existing=None):
    if existing:
        st.subheader("✏️ Edit Member")
    else:
        st.subheader("➕ Add Member")

    key = existing.id if existing else "new"
    with st.form(f"member_form_{key}", clear_on_submit=not existing):
        name = st.text_input("Name", value=(existing.name if existing else ""))
        phone = st.text_input("Phone", value=(existing.phone if existing else ""))
        member_type = st.selectbox(
            "Membership type",
            options=MEMBERSHIP_TYPES,
            index=(MEMBERSHIP_TYPES.index(existing.type) if existing and existing.type in MEMBERSHIP_TYPES else 0),
        )
        amount = st.text_input("Amount paid ($)", value=(utils.format_amount(existing.amount) if existing else ""))

        c1, c2 = st.columns(2)
        with c1:
            start = st.date_input(
                "Start date", value=(utils.try_parse_iso(existing.start) if existing else date.today())
            )
        with c2:
            end = st.date_input(
                "End date", value=(utils.try_parse_iso(existing.end) if existing else date.today())
            )

        submitted = st.form_submit_button("Save Changes" if existing else "Add Member", type="primary")

    if submitted:
        candidate = MemberInput(name=name, phone=phone, type=member_type, amount=amount, start=start, end=end)
        if existing:
            outcome = collection().update(existing.id, candidate)
        else:
            outcome = collection().add(candidate)
        if outcome.ok:
            st.session_state.edit_member_id = None
            flash_and_rerun(outcome)
        show_outcome(outcome)

    if existing and st.button("Cancel edit"):
        st.session_state.edit_member_id = None
        st.rerun()


def csv_section():
    st.subheader("CSV Operations")
    st.caption(f"Import CSV (header: {CSV_HEADER})")

    uploaded = st.file_uploader("Choose CSV file", type=["csv"])
    if uploaded is not None and st.button("Import"):
        text = uploaded.getvalue().decode("utf-8", errors="replace")
        outcome = collection().import_csv(text)
        if outcome.ok and outcome.count:
            flash_and_rerun(outcome)
        st.error("No valid rows found in CSV")

    st.download_button(
        "Export CSV",
        data=members_to_csv_bytes(collection().members),
        file_name=EXPORT_FILENAME,
        mime="text/csv",
    )


def members_list(text, type_filter, status_filter):
    rows = collection().query(text=text, type_filter=type_filter, status_filter=status_filter)

    st.caption(f"Total: {len(collection())}")
    if not rows:
        st.info("No members found. Add your first member or adjust your search filters.")
        return

    df = utils.members_to_dataframe(rows)
    st.dataframe(df.drop(columns=["id"]), width="stretch", hide_index=True)

    st.divider()
    st.subheader("Member actions")
    by_id = {m.id: m for m in rows}
    member_id = st.selectbox(
        "Member",
        [None] + list(by_id),
        key="member_select",
        format_func=lambda mid: "(none)" if mid is None else f"{by_id[mid].name} ({by_id[mid].phone}) - ends {by_id[mid].end} [{mid}]",
    )
    if member_id is None:
        return
    c1, c2 = st.columns(2)
    with c1:
        if st.button("Edit", key="edit_member"):
            st.session_state.edit_member_id = member_id
            st.rerun()
    with c2:
        delete_confirm = st.checkbox("Confirm delete", value=False, key=f"del_confirm_{member_id}")
        if st.button("Delete", key="delete_member", type="secondary", disabled=not delete_confirm):
            flash_and_rerun(collection().remove(member_id))


def main_app():
    text, type_filter, status_filter = sidebar_filters()

    st.header("📋 B7 Gym Dashboard")
    show_flash()
    left, right = st.columns([1, 2])

    with left:
        existing = None
        if st.session_state.edit_member_id:
            existing = collection().get(st.session_state.edit_member_id)
        member_form(existing=existing)
        st.divider()
        csv_section()

    with right:
        members_list(text, type_filter, status_filter)
        st.divider()
        st.subheader("Paid by membership type")
        st.dataframe(utils.amount_by_type(collection().members), width="stretch", hide_index=True)


# --------- App entry ---------

def run():
    init_once()
    main_app()


if __name__ == "__main__":
    run()
