"""RSVP page UI: lookup, registration form and response summary."""
import html
from typing import Any, Dict, Mapping

import streamlit as st

from rsvp.models.guest import ATTENDANCE_OPTIONS
from rsvp.services.request_handler import RequestHandler
from rsvp.ui.html_utils import html_block

ATTENDANCE_LABELS = {
    "yes": "Yes, I'll be there",
    "no": "Sorry, I can't make it",
    "maybe": "Maybe",
}


def _format_summary(summary: Mapping[str, int]) -> str:
    """One-line response counter shown above the form."""
    total = summary.get("total", 0)
    if total == 0:
        return "Be the first to respond!"
    noun = "response" if total == 1 else "responses"
    return (
        f"{total} {noun} so far · {summary.get('yes', 0)} attending · "
        f"{summary.get('maybe', 0)} maybe · {summary.get('no', 0)} declined"
    )


def _render_stats(summary: Mapping[str, int]) -> str:
    return html_block(f"""
        <div class="rsvp-stats" style="text-align: center; color: #667eea; font-weight: 500;">
            {_format_summary(summary)}
        </div>
    """)


def _form_defaults(guest: Mapping[str, Any]) -> Dict[str, Any]:
    """Map a stored guest (camelCase JSON) onto form widget defaults."""
    # Stored text is escaped; unescape so a resubmit does not escape it twice
    def text(key):
        return html.unescape(guest.get(key) or "")

    attendance = guest.get("attendance", "yes")
    return {
        "fullName": text("fullName"),
        "phone": guest.get("phone", ""),
        "company": text("company"),
        "jobTitle": text("jobTitle"),
        "companyAddress": text("companyAddress"),
        "attendance": ATTENDANCE_OPTIONS.index(attendance) if attendance in ATTENDANCE_OPTIONS else 0,
        "guestsCount": int(guest.get("guestsCount", 0) or 0),
        "comments": text("comments"),
        "updatesRequested": bool(guest.get("updatesRequested", False)),
    }


def _find_guest(handler: RequestHandler, email: str) -> Dict[str, Any]:
    _, payload = handler.handle("get_guests", {})
    key = email.strip().lower()
    for guest in payload.get("guests", []):
        if guest.get("email", "").lower() == key:
            return guest
    return {}


def _render_lookup(handler: RequestHandler) -> None:
    with st.expander("Already responded? Look up your registration"):
        lookup_email = st.text_input("Email address", key="lookup_email")
        if st.button("Check", key="lookup_button"):
            status, payload = handler.handle("check_guest", {"email": lookup_email})
            if status != 200:
                st.error(f"❌ {payload['message']}")
            elif payload["exists"]:
                st.session_state.edit_email = lookup_email.strip()
                st.success("✅ Found your registration. You can update it below.")
            else:
                st.session_state.edit_email = None
                st.info("No registration found for this email yet.")


def _render_form(handler: RequestHandler) -> None:
    edit_email = st.session_state.get("edit_email")
    defaults = _form_defaults(_find_guest(handler, edit_email) if edit_email else {})

    with st.form("rsvp_form"):
        full_name = st.text_input("Full Name *", value=defaults["fullName"], max_chars=500)
        email = st.text_input("Email *", value=edit_email or "", disabled=bool(edit_email))
        phone = st.text_input("Phone", value=defaults["phone"], max_chars=20)
        company = st.text_input("Company *", value=defaults["company"], max_chars=500)
        job_title = st.text_input("Job Title *", value=defaults["jobTitle"], max_chars=500)
        company_address = st.text_area("Company Address *", value=defaults["companyAddress"], max_chars=500)
        attendance = st.radio(
            "Will you attend? *",
            ATTENDANCE_OPTIONS,
            index=defaults["attendance"],
            format_func=ATTENDANCE_LABELS.get,
        )
        guests_count = st.number_input(
            "Additional guests", min_value=0, max_value=10, value=defaults["guestsCount"], step=1
        )
        comments = st.text_area("Comments", value=defaults["comments"], max_chars=1000)
        updates = st.checkbox("Send me event updates", value=defaults["updatesRequested"])
        submitted = st.form_submit_button(
            "Update my RSVP" if edit_email else "Submit RSVP", type="primary", use_container_width=True
        )

    if not submitted:
        return

    fields = {
        "fullName": full_name,
        "email": edit_email or email,
        "phone": phone,
        "company": company,
        "jobTitle": job_title,
        "companyAddress": company_address,
        "attendance": attendance,
        "guestsCount": str(int(guests_count)),
        "comments": comments,
    }
    if updates:
        fields["updatesRequested"] = "1"

    status, payload = handler.handle("update_guest" if edit_email else "add_guest", fields)
    if status == 200:
        st.success(f"✅ {payload['message']}")
        st.session_state.edit_email = None
        st.balloons()
    else:
        st.error(f"❌ {payload['message']}")


def render_rsvp_page(handler: RequestHandler) -> None:
    """Render the whole RSVP page."""
    st.markdown(html_block("""
        <div class="rsvp-header" style="text-align: center;">
            <h1>Event RSVP</h1>
            <p>Please confirm your attendance</p>
        </div>
    """), unsafe_allow_html=True)

    st.markdown(_render_stats(handler.service.summary()), unsafe_allow_html=True)

    _render_lookup(handler)
    _render_form(handler)
