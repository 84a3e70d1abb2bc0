"""
app.py
Streamlit Gym Admin Console (owner/admin only).
Run: streamlit run app.py
"""

from __future__ import annotations

import logging
from datetime import date

import streamlit as st

import auth
import records
import utils
from config import APP_NAME, SUPPORTED_LANGUAGES, AppConfig, configure_logging
from context import AppContext, build_context
from datatable import ColumnDescriptor
from errors import GymAdminError, ValidationError
from models import (
    ANNOUNCEMENT_CATEGORIES,
    ATTENDANCE_STATUSES,
    CLASS_STATUSES,
    EQUIPMENT_CONDITIONS,
    MEMBER_STATUSES,
    PAYMENT_METHODS,
    TRAINER_STATUSES,
    WEEKDAYS,
    Announcement,
    Booking,
    Equipment,
    GymClass,
    Member,
    MembershipPlan,
    Payment,
    Trainer,
)
from table_view import drop_table_engines, get_table_engine, render_data_table

st.set_page_config(page_title=APP_NAME, layout="wide")
logger = logging.getLogger(__name__)


def get_ctx() -> AppContext:
    if "ctx" not in st.session_state:
        config = AppConfig.from_env()
        configure_logging(config.log_level)
        st.session_state.ctx = build_context(config)
    return st.session_state.ctx


def require_login():
    if "logged_in" not in st.session_state:
        st.session_state.logged_in = False
    if "username" not in st.session_state:
        st.session_state.username = None


def logout():
    logger.info("User %s logged out", st.session_state.username)
    st.session_state.logged_in = False
    st.session_state.username = None
    drop_table_engines(st.session_state)


def show_errors(err: GymAdminError):
    messages = err.messages if isinstance(err, ValidationError) else [str(err)]
    for m in messages:
        st.error(m)


def data_table(ctx: AppContext, view_key: str, rows, columns, search_key=None, pagination=True, show_search=True,
               on_row_click=None):
    engine = get_table_engine(
        st.session_state, view_key, search_key=search_key, pagination=pagination, page_size=ctx.config.page_size
    )
    return render_data_table(st, engine, rows, columns, key=view_key, t=ctx.t, show_search=show_search,
                             on_row_click=on_row_click)


def record_picker(label: str, rows, describe, key: str):
    """Selectbox over rows; returns the chosen row or None."""
    options = {describe(r): r for r in rows}
    choice = st.selectbox(label, ["(none)"] + list(options), key=key)
    return options.get(choice)


def login_screen(ctx: AppContext):
    st.title(f"🔐 {ctx.t('login')}")

    col1, col2 = st.columns([1, 1])
    with col1:
        username = st.text_input(ctx.t("username"), value="admin")
        password = st.text_input(ctx.t("password"), type="password")
        if st.button(ctx.t("login"), type="primary"):
            if auth.login(ctx.db, username.strip(), password):
                st.session_state.logged_in = True
                st.session_state.username = username.strip()
                st.rerun()
            else:
                st.error(ctx.t("invalidCredentials"))

    with col2:
        st.info(
            "First run creates a default admin:\n\n"
            "- username: **admin**\n"
            f"- password: **{auth.DEFAULT_ADMIN_PASSWORD}**\n\n"
            "You will be forced to change it on first login."
        )


def password_form(ctx: AppContext, key: str) -> bool:
    new1 = st.text_input("New password", type="password", key=f"{key}_1")
    new2 = st.text_input("Confirm new password", type="password", key=f"{key}_2")
    if st.button(ctx.t("changePassword"), type="primary", key=f"{key}_btn"):
        errors = auth.validate_new_password(new1, new2)
        for e in errors:
            st.error(e)
        if not errors:
            auth.change_password(ctx.db, st.session_state.username, new1)
            st.success("Password updated.")
            return True
    return False


def force_change_password_screen(ctx: AppContext):
    st.title("⚠️ Change Password (Required)")
    st.warning("You must change the default password before using the app.")
    if password_form(ctx, "force_pw"):
        st.rerun()


# ---------- Pages ----------

def dashboard_page(ctx: AppContext):
    st.header(f"📊 {ctx.t('dashboard')}")
    records.refresh_member_statuses(ctx.db)
    stats = records.dashboard_stats(ctx.db)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric(ctx.t("activeMembers"), stats["active_members"])
    c2.metric(ctx.t("expiringSoon"), stats["expiring_soon"])
    c3.metric(ctx.t("monthlyRevenue"), utils.format_currency(stats["monthly_revenue"], ctx.config.currency))
    c4.metric(ctx.t("pendingPayments"), stats["pending_payments"])

    if ctx.is_feature_enabled("announcements"):
        for a in records.list_announcements(ctx.db, active_on=date.today()):
            show_announcement(a)

    left, right = st.columns(2)
    with left:
        st.subheader(ctx.t("todayClasses"))
        today_classes = records.classes_for_day(ctx.db) if ctx.is_feature_enabled("classes") else []
        if today_classes:
            data_table(ctx, "dashboard_today", today_classes, [
                ColumnDescriptor(ctx.t("name"), "name"),
                ColumnDescriptor("Time", lambda c: f"{utils.format_time(c['start_time'])} - {utils.format_time(c['end_time'])}"),
                ColumnDescriptor(ctx.t("trainer"), lambda c: utils.full_name(c["trainer"])),
                ColumnDescriptor("Room", "room"),
            ], pagination=False, show_search=False)
        else:
            st.caption(ctx.t("noClassesToday"))
    with right:
        st.subheader(ctx.t("recentActivity"))
        activity = records.recent_activity(ctx.db)
        if not activity:
            st.caption(ctx.t("noRecentActivity"))
        for entry in activity:
            st.markdown(f"- {describe_activity(ctx, entry)} · _{entry['date']}_")

    st.divider()
    st.subheader(ctx.t("expiringSoon"))
    columns = [
        ColumnDescriptor(ctx.t("name"), utils.full_name),
        ColumnDescriptor(ctx.t("phone"), "phone"),
        ColumnDescriptor(ctx.t("plan"), lambda m: (m["plan"] or {}).get("name", "")),
        ColumnDescriptor("End date", "end_date"),
    ]
    data_table(ctx, "dashboard_expiring", records.expiring_members(ctx.db), columns,
               pagination=False, show_search=False)

    st.subheader(ctx.t("recentMembers"))
    data_table(ctx, "dashboard_recent", records.list_members(ctx.db)[:5], columns,
               pagination=False, show_search=False)


def show_announcement(a: dict):
    text = f"**{a['title']}**\n\n{a['content']}"
    if a["category"] in ("maintenance", "operational"):
        st.warning(text, icon="⚠️")
    elif a["category"] in ("promotion", "event"):
        st.success(text, icon="🎉")
    else:
        st.info(text, icon="📢")


def describe_activity(ctx: AppContext, entry: dict) -> str:
    if entry["kind"] == "payment":
        return ctx.t("activityPayment", name=entry["name"],
                     amount=utils.format_currency(entry["detail"], ctx.config.currency))
    if entry["kind"] == "booking":
        return ctx.t("activityBooking", name=entry["name"], detail=entry["detail"])
    return ctx.t("activityMember", name=entry["name"])


def member_form(ctx: AppContext, plans, existing=None):
    if existing:
        st.subheader(f"✏️ Edit Member (ID: {existing['id']})")
    else:
        st.subheader("➕ Add Member")
    if not plans:
        st.info("Create a membership plan first.")
        return

    plan_ids = [p["id"] for p in plans]
    plan_labels = {p["id"]: f"{p['name']} ({p['duration_months']} mo)" for p in plans}

    col1, col2, col3 = st.columns(3)
    with col1:
        first_name = st.text_input("First name", value=existing["first_name"] if existing else "")
        last_name = st.text_input("Last name", value=existing["last_name"] if existing else "")
        email = st.text_input(ctx.t("email"), value=(existing["email"] or "") if existing else "")
        phone = st.text_input(ctx.t("phone"), value=existing["phone"] if existing else "")
    with col2:
        plan_index = plan_ids.index(existing["plan_id"]) if existing and existing["plan_id"] in plan_ids else 0
        plan_id = st.selectbox(ctx.t("plan"), plan_ids, index=plan_index, format_func=plan_labels.get)
        join_date = st.date_input(
            "Join date", value=utils.parse_iso(existing["join_date"]) if existing else date.today()
        ).isoformat()
        start_date = st.date_input(
            "Start date", value=utils.parse_iso(existing["start_date"]) if existing else date.today()
        ).isoformat()
    with col3:
        months = next(p["duration_months"] for p in plans if p["id"] == plan_id)
        auto_end = utils.calc_end_date(start_date, months)
        end_date = st.date_input(
            "End date (auto-calculated, editable)",
            value=utils.parse_iso(existing["end_date"] if existing else auto_end),
        ).isoformat()
        status = st.selectbox(
            ctx.t("status"),
            MEMBER_STATUSES,
            index=MEMBER_STATUSES.index(existing["status"]) if existing else 0,
            format_func=ctx.translator.status_label,
        )

    if st.button(ctx.t("save"), type="primary", key="member_save"):
        member = Member(
            existing["id"] if existing else None,
            first_name.strip(), last_name.strip(), email.strip() or None, phone.strip(),
            plan_id, join_date, start_date, end_date, status,
        )
        try:
            records.save_member(ctx.db, member)
        except GymAdminError as e:
            show_errors(e)
            return
        st.session_state.edit_member_id = None
        st.success("Member saved.")
        st.rerun()


def open_member_profile(member: dict):
    st.session_state.profile_member_id = member["id"]


def close_member_profile():
    st.session_state.profile_member_id = None
    # forget the row selection, or the profile would reopen on the next rerun
    st.session_state.pop("members_table", None)


def member_profile_view(ctx: AppContext, member_id: int):
    st.button(f"← {ctx.t('backToMembers')}", key="profile_back", on_click=close_member_profile)
    try:
        profile = records.member_profile(ctx.db, member_id)
    except GymAdminError as e:
        show_errors(e)
        return
    member = profile["member"]
    st.subheader(f"{utils.get_initials(utils.full_name(member))} · {utils.full_name(member)}")
    st.caption(ctx.t("memberProfile"))

    overview, payments, bookings = st.tabs([ctx.t("overview"), ctx.t("paymentHistory"), ctx.t("bookings")])
    with overview:
        c1, c2, c3, c4 = st.columns(4)
        c1.metric(ctx.t("status"), ctx.translator.status_label(member["status"]))
        c2.metric(ctx.t("plan"), (member["plan"] or {}).get("name", "—"))
        c3.metric(ctx.t("totalPaid"), utils.format_currency(profile["total_paid"], ctx.config.currency))
        c4.metric(ctx.t("attendedClasses"), profile["attended_classes"])
        st.write(f"{ctx.t('email')}: {member['email'] or '—'}  \n{ctx.t('phone')}: {member['phone']}")
        st.write(f"{member['start_date']} → {member['end_date']}")

    with payments:
        data_table(ctx, "profile_payments", profile["payments"], [
            ColumnDescriptor(ctx.t("date"), "date"),
            ColumnDescriptor(ctx.t("plan"), lambda p: (p["plan"] or {}).get("name", "")),
            ColumnDescriptor(ctx.t("amount"), lambda p: utils.format_currency(p["amount"], ctx.config.currency)),
            ColumnDescriptor(ctx.t("method"), "method"),
            ColumnDescriptor(ctx.t("status"), lambda p: ctx.translator.status_label(p["status"])),
        ], show_search=False)

    with bookings:
        member_bookings(ctx, member_id, profile["bookings"])


def member_bookings(ctx: AppContext, member_id: int, rows):
    data_table(ctx, "profile_bookings", rows, [
        ColumnDescriptor(ctx.t("date"), "booking_date"),
        ColumnDescriptor(ctx.t("classes"), lambda b: (b["gym_class"] or {}).get("name", "")),
        ColumnDescriptor(ctx.t("trainer"), "trainer_name"),
        ColumnDescriptor("Time", lambda b: utils.format_time((b["gym_class"] or {}).get("start_time"))),
        ColumnDescriptor(ctx.t("status"), lambda b: ctx.translator.status_label(b["status"])),
        ColumnDescriptor(ctx.t("attendance"), lambda b: ctx.translator.status_label(b["attendance_status"])),
    ], show_search=False)

    confirmed = [b for b in rows if b["status"] == "confirmed"]
    chosen = record_picker(
        ctx.t("bookings"), confirmed,
        lambda b: f"#{b['id']} {(b['gym_class'] or {}).get('name', '')} - {b['booking_date']}",
        "booking_pick",
    )
    if chosen:
        c1, c2 = st.columns(2)
        attendance = c1.selectbox(ctx.t("attendance"), ATTENDANCE_STATUSES,
                                  index=ATTENDANCE_STATUSES.index(chosen["attendance_status"]),
                                  format_func=ctx.translator.status_label, key="booking_attendance")
        try:
            if c1.button(ctx.t("save"), key="booking_attendance_save"):
                records.set_attendance(ctx.db, chosen["id"], attendance)
                st.rerun()
            if c2.button(ctx.t("cancelBooking"), key="booking_cancel"):
                records.cancel_booking(ctx.db, chosen["id"])
                st.rerun()
        except GymAdminError as e:
            show_errors(e)

    if not ctx.is_feature_enabled("classes"):
        return
    st.divider()
    st.subheader(ctx.t("bookClass"))
    classes = [c for c in records.list_classes(ctx.db) if c["status"] != "cancelled"]
    if not classes:
        st.caption(ctx.t("noResults"))
        return
    class_ids = [c["id"] for c in classes]
    class_names = {c["id"]: f"{c['name']} ({c['day_of_week']} {utils.format_time(c['start_time'])})" for c in classes}
    c1, c2 = st.columns(2)
    class_id = c1.selectbox(ctx.t("classes"), class_ids, format_func=class_names.get, key="booking_class")
    booking_date = c2.date_input(ctx.t("date"), value=date.today(), key="booking_date").isoformat()
    if st.button(ctx.t("bookClass"), type="primary", key="booking_save"):
        try:
            records.book_class(ctx.db, Booking(None, member_id, class_id, booking_date))
        except GymAdminError as e:
            show_errors(e)
            return
        st.success(ctx.t("bookClass"))
        st.rerun()


def members_page(ctx: AppContext):
    st.header(f"👥 {ctx.t('members')}")
    records.refresh_member_statuses(ctx.db)

    profile_id = st.session_state.get("profile_member_id")
    if profile_id:
        member_profile_view(ctx, profile_id)
        return

    with st.sidebar:
        st.subheader(ctx.t("status"))
        status_filter = st.selectbox(
            ctx.t("status"), ["all", *MEMBER_STATUSES], label_visibility="collapsed",
            format_func=lambda s: "All" if s == "all" else ctx.translator.status_label(s),
        )

    rows = records.list_members(ctx.db, status=None if status_filter == "all" else status_filter)
    columns = [
        ColumnDescriptor("ID", "id"),
        ColumnDescriptor(ctx.t("name"), utils.full_name, searchable=True),
        ColumnDescriptor(ctx.t("email"), "email", searchable=True),
        ColumnDescriptor(ctx.t("phone"), "phone"),
        ColumnDescriptor(ctx.t("plan"), lambda m: (m["plan"] or {}).get("name", "")),
        ColumnDescriptor("End date", "end_date"),
        ColumnDescriptor(ctx.t("status"), lambda m: ctx.translator.status_label(m["status"])),
    ]
    st.caption(ctx.t("selectRowHint"))
    profile_before = st.session_state.get("profile_member_id")
    data_table(ctx, "members", rows, columns, search_key="first_name,last_name,email",
               on_row_click=open_member_profile)
    if st.session_state.get("profile_member_id") != profile_before:
        st.rerun()

    st.divider()
    selected = record_picker(ctx.t("member"), rows, lambda m: f"{utils.full_name(m)} - ID {m['id']}", "member_pick")
    if selected:
        c1, c2 = st.columns(2)
        with c1:
            if st.button(ctx.t("edit"), key="member_edit"):
                st.session_state.edit_member_id = selected["id"]
                st.rerun()
        with c2:
            confirm = st.checkbox(ctx.t("confirmDelete"), value=False, key="member_del_confirm")
            if st.button(ctx.t("delete"), disabled=not confirm, key="member_delete"):
                records.delete_member(ctx.db, selected["id"])
                st.success("Member deleted.")
                st.rerun()

    st.divider()
    plans = records.list_plans(ctx.db, active_only=True)
    edit_id = st.session_state.get("edit_member_id")
    if edit_id:
        try:
            member_form(ctx, plans, existing=records.get_member(ctx.db, edit_id))
        except GymAdminError as e:
            show_errors(e)
        if st.button(ctx.t("cancel"), key="member_cancel"):
            st.session_state.edit_member_id = None
            st.rerun()
    else:
        member_form(ctx, plans)


def plans_page(ctx: AppContext):
    st.header(f"🏷️ {ctx.t('plans')}")
    rows = records.list_plans(ctx.db)
    columns = [
        ColumnDescriptor(ctx.t("name"), "name", searchable=True),
        ColumnDescriptor("Description", "description"),
        ColumnDescriptor("Price", lambda p: utils.format_currency(p["price"], ctx.config.currency)),
        ColumnDescriptor("Months", "duration_months"),
        ColumnDescriptor("Active", lambda p: "✅" if p["active"] else "—"),
    ]
    data_table(ctx, "plans", rows, columns, search_key="name")

    st.divider()
    existing = record_picker(ctx.t("edit"), rows, lambda p: f"{p['name']} - ID {p['id']}", "plan_pick")
    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input(ctx.t("name"), value=existing["name"] if existing else "")
        description = st.text_area("Description", value=(existing["description"] or "") if existing else "")
    with col2:
        price = st.number_input("Price", min_value=0.0, value=float(existing["price"]) if existing else 100.0)
        months = st.number_input("Duration (months)", min_value=1, step=1,
                                 value=int(existing["duration_months"]) if existing else 1)
        active = st.checkbox("Active", value=bool(existing["active"]) if existing else True)

    if st.button(ctx.t("save"), type="primary", key="plan_save"):
        plan = MembershipPlan(existing["id"] if existing else None, name.strip(), description.strip() or None,
                              float(price), int(months), active)
        try:
            records.save_plan(ctx.db, plan)
        except GymAdminError as e:
            show_errors(e)
            return
        st.success("Plan saved.")
        st.rerun()


def trainers_page(ctx: AppContext):
    st.header(f"🧑‍🏫 {ctx.t('trainers')}")
    rows = records.list_trainers(ctx.db)
    columns = [
        ColumnDescriptor(ctx.t("name"), utils.full_name, searchable=True),
        ColumnDescriptor(ctx.t("email"), "email"),
        ColumnDescriptor(ctx.t("phone"), "phone"),
        ColumnDescriptor("Specialization", "specialization"),
        ColumnDescriptor(ctx.t("status"), lambda tr: ctx.translator.status_label(tr["status"])),
    ]
    data_table(ctx, "trainers", rows, columns, search_key="first_name")

    st.divider()
    existing = record_picker(ctx.t("edit"), rows, lambda tr: f"{utils.full_name(tr)} - ID {tr['id']}", "trainer_pick")
    col1, col2 = st.columns(2)
    with col1:
        first_name = st.text_input("First name", value=existing["first_name"] if existing else "", key="tr_first")
        last_name = st.text_input("Last name", value=existing["last_name"] if existing else "", key="tr_last")
        specialization = st.text_input("Specialization", value=(existing["specialization"] or "") if existing else "")
    with col2:
        email = st.text_input(ctx.t("email"), value=(existing["email"] or "") if existing else "", key="tr_email")
        phone = st.text_input(ctx.t("phone"), value=(existing["phone"] or "") if existing else "", key="tr_phone")
        status = st.selectbox(ctx.t("status"), TRAINER_STATUSES,
                              index=TRAINER_STATUSES.index(existing["status"]) if existing else 0,
                              format_func=ctx.translator.status_label)

    c1, c2 = st.columns(2)
    with c1:
        if st.button(ctx.t("save"), type="primary", key="trainer_save"):
            trainer = Trainer(existing["id"] if existing else None, first_name.strip(), last_name.strip(),
                              email.strip() or None, phone.strip() or None, specialization.strip() or None, status)
            try:
                records.save_trainer(ctx.db, trainer)
            except GymAdminError as e:
                show_errors(e)
                return
            st.success("Trainer saved.")
            st.rerun()
    with c2:
        if existing and st.button(ctx.t("delete"), key="trainer_delete"):
            records.delete_trainer(ctx.db, existing["id"])
            st.rerun()


def classes_page(ctx: AppContext):
    st.header(f"📅 {ctx.t('classes')}")
    rows = records.list_classes(ctx.db)
    columns = [
        ColumnDescriptor(ctx.t("name"), "name", searchable=True),
        ColumnDescriptor(ctx.t("trainer"), lambda c: utils.full_name(c["trainer"])),
        ColumnDescriptor("Day", "day_of_week"),
        ColumnDescriptor("Time", lambda c: f"{utils.format_time(c['start_time'])} - {utils.format_time(c['end_time'])}"),
        ColumnDescriptor("Room", "room"),
        ColumnDescriptor("Capacity", "capacity"),
        ColumnDescriptor(ctx.t("status"), lambda c: ctx.translator.status_label(c["status"])),
    ]
    data_table(ctx, "classes", rows, columns, search_key="name")

    st.divider()
    trainers = records.list_trainers(ctx.db)
    trainer_ids = [None] + [tr["id"] for tr in trainers]
    trainer_names = {tr["id"]: utils.full_name(tr) for tr in trainers}
    existing = record_picker(ctx.t("edit"), rows, lambda c: f"{c['name']} ({c['day_of_week']}) - ID {c['id']}", "class_pick")

    col1, col2, col3 = st.columns(3)
    with col1:
        name = st.text_input(ctx.t("name"), value=existing["name"] if existing else "", key="cl_name")
        description = st.text_input("Description", value=(existing["description"] or "") if existing else "")
        trainer_id = st.selectbox(
            ctx.t("trainer"), trainer_ids,
            index=trainer_ids.index(existing["trainer_id"]) if existing and existing["trainer_id"] in trainer_ids else 0,
            format_func=lambda i: "—" if i is None else trainer_names[i],
        )
    with col2:
        day = st.selectbox("Day", WEEKDAYS, index=WEEKDAYS.index(existing["day_of_week"]) if existing else 0)
        start_time = st.text_input("Start (HH:MM)", value=existing["start_time"] if existing else "07:00")
        end_time = st.text_input("End (HH:MM)", value=existing["end_time"] if existing else "08:00")
    with col3:
        room = st.text_input("Room", value=(existing["room"] or "") if existing else "")
        capacity = st.number_input("Capacity", min_value=1, step=1, value=int(existing["capacity"]) if existing else 20)
        status = st.selectbox(ctx.t("status"), CLASS_STATUSES,
                              index=CLASS_STATUSES.index(existing["status"]) if existing else 0,
                              format_func=ctx.translator.status_label, key="cl_status")

    c1, c2 = st.columns(2)
    with c1:
        if st.button(ctx.t("save"), type="primary", key="class_save"):
            gym_class = GymClass(existing["id"] if existing else None, name.strip(), description.strip() or None,
                                 trainer_id, room.strip() or None, int(capacity), day,
                                 start_time.strip(), end_time.strip(), status)
            try:
                records.save_class(ctx.db, gym_class)
            except GymAdminError as e:
                show_errors(e)
                return
            st.success("Class saved.")
            st.rerun()
    with c2:
        if existing and st.button(ctx.t("delete"), key="class_delete"):
            records.delete_class(ctx.db, existing["id"])
            st.rerun()


def equipment_page(ctx: AppContext):
    st.header(f"🏋️ {ctx.t('equipment')}")
    rows = records.list_equipment(ctx.db)
    columns = [
        ColumnDescriptor(ctx.t("name"), "name", searchable=True),
        ColumnDescriptor("Category", "category"),
        ColumnDescriptor("Quantity", lambda e: e["quantity"]),
        ColumnDescriptor("Condition", lambda e: e["condition"].capitalize()),
        ColumnDescriptor("Purchased", "purchase_date"),
        ColumnDescriptor(ctx.t("notes"), "notes"),
    ]
    data_table(ctx, "equipment", rows, columns, search_key="name")

    st.divider()
    existing = record_picker(ctx.t("edit"), rows, lambda e: f"{e['name']} - ID {e['id']}", "eq_pick")
    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input(ctx.t("name"), value=existing["name"] if existing else "", key="eq_name")
        category = st.text_input("Category", value=(existing["category"] or "") if existing else "")
        quantity = st.number_input("Quantity", min_value=0, step=1, value=int(existing["quantity"]) if existing else 1)
    with col2:
        condition = st.selectbox("Condition", EQUIPMENT_CONDITIONS,
                                 index=EQUIPMENT_CONDITIONS.index(existing["condition"]) if existing else 0)
        purchase_date = st.date_input(
            "Purchase date",
            value=utils.parse_iso(existing["purchase_date"]) if existing and existing["purchase_date"] else date.today(),
        ).isoformat()
        notes = st.text_input(ctx.t("notes"), value=(existing["notes"] or "") if existing else "", key="eq_notes")

    c1, c2 = st.columns(2)
    with c1:
        if st.button(ctx.t("save"), type="primary", key="eq_save"):
            item = Equipment(existing["id"] if existing else None, name.strip(), category.strip() or None,
                             int(quantity), condition, purchase_date, notes.strip() or None)
            try:
                records.save_equipment(ctx.db, item)
            except GymAdminError as e:
                show_errors(e)
                return
            st.success("Equipment saved.")
            st.rerun()
    with c2:
        if existing and st.button(ctx.t("delete"), key="eq_delete"):
            records.delete_equipment(ctx.db, existing["id"])
            st.rerun()


def payments_page(ctx: AppContext):
    st.header(f"💳 {ctx.t('payments')}")
    members = records.list_members(ctx.db)
    if not members:
        st.info("No members yet. Add a member first.")
        return

    rows = records.list_payments(ctx.db)
    columns = [
        ColumnDescriptor("ID", "id"),
        ColumnDescriptor(ctx.t("member"), lambda p: utils.full_name(p["member"])),
        ColumnDescriptor(ctx.t("plan"), lambda p: (p["plan"] or {}).get("name", "")),
        ColumnDescriptor(ctx.t("amount"), lambda p: utils.format_currency(p["amount"], ctx.config.currency)),
        ColumnDescriptor(ctx.t("date"), "date"),
        ColumnDescriptor(ctx.t("method"), "method"),
        ColumnDescriptor("Reference", "reference"),
        ColumnDescriptor(ctx.t("status"), lambda p: ctx.translator.status_label(p["status"])),
    ]
    # no key: matches any text field of the payment, its member or its plan
    data_table(ctx, "payments", rows, columns, search_key=None)

    st.divider()
    st.subheader(f"{ctx.t('verifyPayment')} / {ctx.t('rejectPayment')}")
    pending = [p for p in rows if p["status"] == "pending"]
    if not pending:
        st.caption(ctx.t("noResults"))
    else:
        chosen = record_picker(
            ctx.t("payments"), pending,
            lambda p: f"#{p['id']} {utils.full_name(p['member'])} - {utils.format_currency(p['amount'], ctx.config.currency)}",
            "pay_pick",
        )
        if chosen:
            reason = st.text_area(ctx.t("rejectionReason"), key="pay_reason")
            c1, c2 = st.columns(2)
            try:
                if c1.button(ctx.t("verify"), type="primary"):
                    records.verify_payment(ctx.db, chosen["id"])
                    st.rerun()
                if c2.button(ctx.t("reject")):
                    if not reason.strip():
                        st.error(ctx.t("pleaseProvideRejectionReason"))
                    else:
                        records.reject_payment(ctx.db, chosen["id"], reason)
                        st.rerun()
            except GymAdminError as e:
                show_errors(e)

    st.divider()
    st.subheader("Add payment")
    plans = records.list_plans(ctx.db)
    member_ids = [m["id"] for m in members]
    member_names = {m["id"]: f"{utils.full_name(m)} - ID {m['id']}" for m in members}
    plan_ids = [None] + [p["id"] for p in plans]
    plan_names = {p["id"]: p["name"] for p in plans}

    c1, c2, c3 = st.columns(3)
    with c1:
        member_id = st.selectbox(ctx.t("member"), member_ids, format_func=member_names.get)
        plan_id = st.selectbox(ctx.t("plan"), plan_ids, format_func=lambda i: "—" if i is None else plan_names[i])
    with c2:
        amount = st.number_input(ctx.t("amount"), min_value=0.0, value=100.0)
        pay_date = st.date_input(ctx.t("date"), value=date.today()).isoformat()
    with c3:
        method = st.selectbox(ctx.t("method"), PAYMENT_METHODS)
        reference = st.text_input("Reference", value="")
    notes = st.text_input(ctx.t("notes"), value="", key="pay_notes")

    if st.button("Record payment", type="primary"):
        payment = Payment(None, member_id, plan_id, float(amount), pay_date, method,
                          reference.strip() or None, notes.strip() or None)
        try:
            records.record_payment(ctx.db, payment)
        except GymAdminError as e:
            show_errors(e)
            return
        st.success("Payment recorded.")
        st.rerun()


def announcements_page(ctx: AppContext):
    st.header(f"📢 {ctx.t('announcements')}")
    rows = records.list_announcements(ctx.db)
    today = date.today().isoformat()
    columns = [
        ColumnDescriptor(ctx.t("title"), "title", searchable=True),
        ColumnDescriptor(ctx.t("category"), lambda a: a["category"].capitalize()),
        ColumnDescriptor(ctx.t("publishDate"), "publish_date"),
        ColumnDescriptor(ctx.t("expiryDate"), "expiry_date"),
        ColumnDescriptor(ctx.t("active"), lambda a: "✅" if a["active"] and (a["expiry_date"] or today) >= today else "—"),
    ]
    data_table(ctx, "announcements", rows, columns, search_key="title,content")

    st.divider()
    existing = record_picker(ctx.t("edit"), rows, lambda a: f"{a['title']} - ID {a['id']}", "ann_pick")
    title = st.text_input(ctx.t("title"), value=existing["title"] if existing else "", key="ann_title")
    content = st.text_area(ctx.t("content"), value=existing["content"] if existing else "", key="ann_content")
    col1, col2, col3 = st.columns(3)
    with col1:
        category = st.selectbox(ctx.t("category"), ANNOUNCEMENT_CATEGORIES,
                                index=ANNOUNCEMENT_CATEGORIES.index(existing["category"]) if existing else 0,
                                format_func=str.capitalize, key="ann_category")
        active = st.checkbox(ctx.t("active"), value=bool(existing["active"]) if existing else True, key="ann_active")
    with col2:
        publish_date = st.date_input(
            ctx.t("publishDate"), value=utils.parse_iso(existing["publish_date"]) if existing else date.today(),
            key="ann_publish",
        ).isoformat()
    with col3:
        has_expiry = st.checkbox(ctx.t("hasExpiry"), value=bool(existing and existing["expiry_date"]), key="ann_has_expiry")
        expiry_date = None
        if has_expiry:
            expiry_date = st.date_input(
                ctx.t("expiryDate"),
                value=utils.parse_iso(existing["expiry_date"]) if existing and existing["expiry_date"] else date.today(),
                key="ann_expiry",
            ).isoformat()

    c1, c2 = st.columns(2)
    with c1:
        if st.button(ctx.t("save"), type="primary", key="ann_save"):
            announcement = Announcement(existing["id"] if existing else None, title.strip(), content.strip(),
                                        category, publish_date, expiry_date, active)
            try:
                records.save_announcement(ctx.db, announcement)
            except GymAdminError as e:
                show_errors(e)
                return
            st.success("Announcement saved.")
            st.rerun()
    with c2:
        if existing and st.button(ctx.t("delete"), key="ann_delete"):
            records.delete_announcement(ctx.db, existing["id"])
            st.rerun()


def reports_page(ctx: AppContext):
    st.header(f"🧾 {ctx.t('reports')}")

    st.subheader("Export members to CSV")
    members = records.list_members(ctx.db)
    if members:
        st.download_button("Download members.csv", data=utils.records_to_csv_bytes(members),
                           file_name="members.csv", mime="text/csv")
    else:
        st.caption(ctx.t("noResults"))

    st.divider()
    st.subheader("Export payments to CSV")
    payments = records.list_payments(ctx.db)
    if payments:
        st.download_button("Download payments.csv", data=utils.records_to_csv_bytes(payments),
                           file_name="payments.csv", mime="text/csv")
    else:
        st.caption(ctx.t("noResults"))

    st.divider()
    st.subheader("Revenue summary by month")
    df = utils.revenue_summary_by_month(ctx.db)
    st.dataframe(df, use_container_width=True, hide_index=True)
    if not df.empty:
        st.bar_chart(df.set_index("month")["revenue"])


def settings_page(ctx: AppContext):
    st.header(f"⚙️ {ctx.t('settings')}")

    st.subheader(ctx.t("language"))
    language = st.selectbox(ctx.t("language"), SUPPORTED_LANGUAGES,
                            index=SUPPORTED_LANGUAGES.index(ctx.translator.language))
    if language != ctx.translator.language:
        ctx.translator.set_language(language)
        st.rerun()

    st.divider()
    st.subheader(ctx.t("changePassword"))
    password_form(ctx, "settings_pw")

    st.divider()
    st.subheader("Sample data")
    st.caption("Insert sample trainers, classes, equipment, members, payments, bookings and announcements (adds new rows each run).")
    if st.button("Insert sample data"):
        utils.insert_sample_data(ctx.db)
        st.success("Sample data inserted.")
        st.rerun()


PAGES = {
    "dashboard": (dashboard_page, None),
    "members": (members_page, None),
    "plans": (plans_page, None),
    "classes": (classes_page, "classes"),
    "trainers": (trainers_page, "trainers"),
    "equipment": (equipment_page, "equipment"),
    "payments": (payments_page, None),
    "announcements": (announcements_page, "announcements"),
    "reports": (reports_page, None),
    "settings": (settings_page, None),
}


def main_app(ctx: AppContext):
    st.sidebar.title(f"🏋️ {APP_NAME}")
    st.sidebar.caption(f"Logged in as: {st.session_state.username}")

    pages = [name for name, (_, flag) in PAGES.items() if flag is None or ctx.is_feature_enabled(flag)]
    if st.session_state.get("page") not in pages:
        st.session_state.page = "dashboard"
    page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page), format_func=ctx.t)

    if page != st.session_state.page:
        # per-view search/page state does not survive navigation
        drop_table_engines(st.session_state)
        close_member_profile()
        st.session_state.page = page

    if st.sidebar.button(ctx.t("logout")):
        logout()
        st.rerun()

    PAGES[page][0](ctx)


# --------- App entry ---------

def run():
    ctx = get_ctx()
    require_login()

    if not st.session_state.logged_in:
        login_screen(ctx)
        return

    # Force password change on first login after DB creation
    if ctx.db.is_force_password_change():
        force_change_password_screen(ctx)
        return

    main_app(ctx)


if __name__ == "__main__":
    run()
