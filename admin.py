import asyncio
from datetime import date, timedelta
from typing import List

import pandas as pd
import streamlit as st

from barber_dashboard.core.config import settings
from barber_dashboard.core.errors import DashboardError
from barber_dashboard.models.booking import Booking
from barber_dashboard.services.analytics import summarize
from barber_dashboard.services.booking_service import BookingService

COLUMNS = ["date", "time", "client_name", "service_ordered", "barber_name", "status", "price"]


def bookings_frame(bookings: List[Booking]) -> pd.DataFrame:
    """Table rows for the bookings list, newest date first. Undated bookings sink to the bottom."""
    rows = [
        {**{col: getattr(b, col) for col in COLUMNS}, "id": b.id, "_sort": b.booking_datetime}
        for b in bookings
    ]
    df = pd.DataFrame(rows, columns=[*COLUMNS, "id", "_sort"])
    df = df.sort_values("_sort", ascending=False, na_position="last", kind="stable")
    return df.drop(columns="_sort").reset_index(drop=True)


@st.cache_resource
def event_loop() -> asyncio.AbstractEventLoop:
    # DocumentStore caches a Supabase client bound to this loop; reruns share it
    return asyncio.new_event_loop()


def load_bookings(owner_id: str) -> List[Booking]:
    return event_loop().run_until_complete(BookingService().list_bookings(owner_id))


def render():
    st.set_page_config(
        page_title="Barbershop Admin",
        page_icon="💈",
        layout="wide"
    )

    st.title("Barbershop Admin Panel")

    owner_id = st.text_input("Barbershop ID")
    today = date.today()
    col_from, col_to = st.columns(2)
    start = col_from.date_input("From", today - timedelta(days=settings.ANALYTICS_DEFAULT_DAYS))
    end = col_to.date_input("To", today)

    if st.button("Refresh data"):
        st.rerun()

    if not owner_id:
        st.info("Enter a barbershop ID.")
        return

    try:
        bookings = load_bookings(owner_id)
    except DashboardError as e:
        st.error(e.message)
        return

    if not bookings:
        st.info("No bookings yet.")
        return

    summary = summarize(bookings, start, end)

    # Metrics
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Bookings", summary.total_appointments)
    c2.metric("Revenue", f"{summary.total_revenue:,.2f}")
    c3.metric("Completion rate", f"{summary.completion_rate} %")
    c4.metric("Cancellation rate", f"{summary.cancellation_rate} %")

    if summary.revenue_by_date:
        st.subheader("Revenue by day")
        revenue = pd.DataFrame([p.model_dump() for p in summary.revenue_by_date]).set_index("date")
        st.line_chart(revenue)

    st.subheader("Booking status")
    st.bar_chart(pd.Series(summary.status_counts, name="count"))

    st.subheader("All bookings")
    st.dataframe(bookings_frame(bookings), use_container_width=True)

    st.markdown("---")
    st.caption(f"{settings.PROJECT_NAME} • {settings.ENVIRONMENT}")


if __name__ == "__main__":
    render()
