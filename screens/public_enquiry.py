# screens/public_enquiry.py
"""Anonymous course enquiry form.

Always posts to the public endpoint, so a stale token left in the browser
never turns a visitor's enquiry into an authenticated (and rejected) call.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Tuple

import streamlit as st

from core.api import ApiClient, ApiError
from core.context import AppContext
from core.models import LeadSource, LeadStatus, unwrap_list
from core.navigation import navigate
from core.validation import EMAIL_RE, validate_lead

logger = logging.getLogger(__name__)

REQUIRED = ("firstName", "lastName", "email", "phone", "courseId")


def public_courses(api: ApiClient) -> List[dict]:
    try:
        return unwrap_list(api.courses.list())
    except ApiError as e:
        logger.info("Course list unavailable on the enquiry page: %s", e.message)
        return []


def submit_enquiry(api: ApiClient, form: Dict[str, Any]) -> Tuple[bool, str]:
    data = {k: (form.get(k) or "").strip() for k in REQUIRED + ("message",)}
    if any(not data[k] for k in REQUIRED):
        return False, "Please fill in all required fields marked with *"
    if not EMAIL_RE.match(data["email"]):
        return False, "Invalid email format"
    ok, msg = validate_lead(data)
    if not ok:
        return ok, msg
    data.update(source=LeadSource.WEBSITE.value, status=LeadStatus.NEW.value)
    try:
        api.leads.create_public(data)
    except ApiError as e:
        return False, e.message or "Failed to submit enquiry. Please try again."
    logger.info("Public enquiry received for course %s", data["courseId"])
    return True, "Thank you! Our counsellor will contact you shortly."


def render(ctx: AppContext):
    left, right = st.columns([0.45, 0.55], gap="large")
    with left:
        st.title(f"🎓 {ctx.settings.app.name}")
        st.header("Start Your Learning Journey Today")
        st.write("Join thousands of students who have transformed their careers with our industry-leading courses.")
        st.markdown("- **Expert Instructors**\n- **Placement Support**\n- **Hands-on Projects**")
        if st.button("Staff login"):
            navigate("/login")

    with right:
        st.subheader("Get Started Now")
        courses = public_courses(ctx.api)
        by_id = {c["id"]: c.get("name", "") for c in courses if c.get("id")}
        with st.form("enquiry_form", clear_on_submit=False):
            c1, c2 = st.columns(2)
            first = c1.text_input("First Name *")
            last = c2.text_input("Last Name *")
            email = st.text_input("Email *")
            phone = st.text_input("Phone Number *")
            course = st.selectbox("Course Interest *", list(by_id.keys()), index=None,
                                  format_func=lambda i: by_id.get(i, i), placeholder="Select a course")
            message = st.text_area("Message (Optional)")
            submitted = st.form_submit_button("Submit Enquiry", type="primary", use_container_width=True)

        if submitted:
            with st.spinner("Submitting..."):
                ok, msg = submit_enquiry(ctx.api, {
                    "firstName": first, "lastName": last, "email": email,
                    "phone": phone, "courseId": course, "message": message,
                })
            if ok:
                st.success(msg)
            else:
                st.error(msg)
