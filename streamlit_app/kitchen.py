"""Streamlit kitchen board: live order queue with forward-only status buttons.

Run with ``streamlit run streamlit_app/kitchen.py``. Staff sign in with an admin
account; every button goes through the same service call the web dashboard
uses, so the admin role is checked server-side on each click.
"""

import streamlit as st

from cafeteria.core.config import settings
from cafeteria.services.access import build_access_context
from cafeteria.services.order_service import InvalidTransitionError, OrderNotFoundError, advance_order, list_orders
from cafeteria.services.order_status import ACTIVE_STATUSES, TRANSITION_LABELS, available_transitions
from cafeteria.services.user_service import authenticate_user
from streamlit_app.common import get_session, now_string

st.set_page_config(page_title="Kitchen board", layout="wide")
st.title(f"{settings.app_name} / Kitchen")
st.caption(f"Last refresh: {now_string()}")

if "kitchen_user_id" not in st.session_state:
    with st.form("kitchen_login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        if st.form_submit_button("Sign in"):
            with get_session() as db:
                user = authenticate_user(db, email, password)
                context = build_access_context(db, user.id if user is not None else None)
                if not context.is_admin:
                    st.error("Access denied. Admin only.")
                else:
                    st.session_state["kitchen_user_id"] = context.user_id
                    st.rerun()
    st.stop()

if st.button("Refresh"):
    st.rerun()

with get_session() as db:
    context = build_access_context(db, st.session_state["kitchen_user_id"])
    if not context.is_admin:
        del st.session_state["kitchen_user_id"]
        st.error("Access denied. Admin only.")
        st.stop()

    columns = st.columns(len(ACTIVE_STATUSES))
    orders = list_orders(db)
    for column, status in zip(columns, ACTIVE_STATUSES):
        with column:
            column_orders = [order for order in orders if order.status == status]
            st.subheader(f"{status.capitalize()} ({len(column_orders)})")
            if not column_orders:
                st.caption("No orders")
            for order in column_orders:
                customer = order.user.profile.name if order.user.profile else order.user.email
                st.markdown(f"**#{order.token_number}** {customer}")
                for item in order.items:
                    st.write(f"{item.quantity} x {item.menu_item.name}")
                for next_status in available_transitions(order.status):
                    if st.button(TRANSITION_LABELS[next_status], key=f"advance_{order.id}_{next_status}"):
                        try:
                            advance_order(db, order_id=order.id, new_status=next_status, context=context)
                        except (InvalidTransitionError, OrderNotFoundError) as exc:
                            st.error(str(exc))
                        else:
                            st.rerun()
                st.divider()
