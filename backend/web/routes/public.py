"""
Public pages: marketing content, legal pages and the contact form.

All of these are on the route guard's public allow-list, so they render for
every visitor regardless of session or profile state.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from pydantic import ValidationError

from mentorship.api_client import NetworkError
from mentorship.models import ContactInput

from .. import wiring
from ..components import Notice, SubmitButton, TextAreaField, TextInputField
from ..rendering import field_errors, layout_response
from .security import csrf_rejection

public_router = APIRouter(tags=["Public"])
logger = logging.getLogger("aspirelink.web")

HOME_HTML = """
<section class="hero">
    <h1>Connect students with industry mentors</h1>
    <p class="lead">AspireLink pairs nominated university students with experienced
    professionals for a four-month mentorship: one hour a month, focused on career goals.</p>
    <p>
        <a href="/register-student" class="btn btn-primary">Apply as a student</a>
        <a href="/register-mentor" class="btn btn-secondary">Become a mentor</a>
    </p>
</section>
<section class="features">
    <article><h2>Nominated talent</h2><p>Students are nominated by their professors.</p></article>
    <article><h2>Matched by interest</h2><p>Pairs share disciplines and mentoring topics.</p></article>
    <article><h2>Structured cohorts</h2><p>Cohorts run on a fixed schedule with regular sessions.</p></article>
</section>
"""

PAGES: dict[str, tuple[str, str]] = {
    "/about": (
        "About",
        """
<section class="content-page">
    <h1>About AspireLink</h1>
    <p>AspireLink is a volunteer-run program that opens professional networks to
    students who would not otherwise have access to them.</p>
    <p>Mentors give a few hours over a cohort; students gain guidance, confidence and contacts.</p>
</section>""",
    ),
    "/students": (
        "For Students",
        """
<section class="content-page">
    <h1>For students</h1>
    <ul>
        <li>A professor nominates you for the program.</li>
        <li>You register and tell us about your goals.</li>
        <li>We match you with a mentor from your field of interest.</li>
        <li>You meet once a month for four months.</li>
    </ul>
    <p><a href="/register-student" class="btn btn-primary">Apply now</a></p>
</section>""",
    ),
    "/mentors": (
        "For Mentors",
        """
<section class="content-page">
    <h1>For mentors</h1>
    <p>We look for professionals with at least three years of experience and a wish to help others grow.</p>
    <p>The commitment is one hour per month for four months, plus occasional emails.</p>
    <p><a href="/register-mentor" class="btn btn-primary">Become a mentor</a></p>
</section>""",
    ),
    "/faq": (
        "FAQ",
        """
<section class="content-page">
    <h1>Frequently asked questions</h1>
    <dl>
        <dt>Who can apply?</dt><dd>University students nominated by a professor.</dd>
        <dt>Does it cost anything?</dt><dd>No. The program is free for students and mentors.</dd>
        <dt>How are pairs matched?</dt><dd>By discipline, mentoring topics and availability.</dd>
        <dt>How long does a cohort run?</dt><dd>Four months, with sessions every month.</dd>
    </dl>
</section>""",
    ),
    "/privacy": (
        "Privacy Policy",
        """
<section class="content-page">
    <h1>Privacy policy</h1>
    <p>We store the information you provide at registration to match you with a
    mentor or student. We do not sell personal data. You can ask us to delete your data at any time.</p>
</section>""",
    ),
    "/terms": (
        "Terms of Service",
        """
<section class="content-page">
    <h1>Terms of service</h1>
    <p>By registering you agree to take part in good faith and to follow the code of conduct.</p>
</section>""",
    ),
    "/accessibility": (
        "Accessibility",
        """
<section class="content-page">
    <h1>Accessibility</h1>
    <p>We aim for WCAG 2.1 AA. Every page works with keyboard navigation and screen readers.
    Please tell us about barriers through the contact form.</p>
</section>""",
    ),
    "/code-of-conduct": (
        "Code of Conduct",
        """
<section class="content-page">
    <h1>Code of conduct</h1>
    <p>Respect, confidentiality and reliability are expected from every participant.
    Harassment of any kind leads to removal from the program.</p>
</section>""",
    ),
}


def _page_handler(path: str):
    title, html = PAGES[path]

    async def handler(request: Request):
        return layout_response(request, title, html)

    handler.__name__ = "page_" + path.strip("/").replace("-", "_")
    return handler


@public_router.get("/")
async def home(request: Request):
    return layout_response(request, "Home", HOME_HTML)


for _path in PAGES:
    public_router.add_api_route(_path, _page_handler(_path), methods=["GET"])


def _contact_form(values: dict | None = None, errors: dict | None = None, notice: str | None = None, kind: str = "error") -> str:
    values = values or {}
    errors = errors or {}
    notice_html = Notice(notice, kind=kind).render() if notice else ""
    fields = [
        TextInputField("name", "Name", required=True, error_text=errors.get("name")).render(
            value=values.get("name", ""), autocomplete="name", class_="form-input"
        ),
        TextInputField("email", "Email", required=True, error_text=errors.get("email")).render(
            value=values.get("email", ""), input_type="email", autocomplete="email", class_="form-input"
        ),
        TextInputField("subject", "Subject", error_text=errors.get("subject")).render(
            value=values.get("subject", ""), class_="form-input"
        ),
        TextAreaField("message", "Message", required=True, error_text=errors.get("message")).render(
            value=values.get("message", ""), rows=6, class_="form-input"
        ),
    ]
    return f"""
<section class="form-card">
    <h1>Contact us</h1>
    {notice_html}
    <form method="post" action="/contact" class="contact-form">
        {''.join(fields)}
        <div class="form-actions">{SubmitButton("Send message", loading_label="Sending...").render()}</div>
    </form>
</section>"""


@public_router.get("/contact")
async def contact_page(request: Request):
    return layout_response(request, "Contact", _contact_form())


@public_router.post("/contact")
async def contact_submit(request: Request):
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    form = await request.form()
    values = {k: str(form.get(k) or "") for k in ("name", "email", "subject", "message")}
    try:
        payload = ContactInput(**values)
    except ValidationError as exc:
        return layout_response(request, "Contact", _contact_form(values, field_errors(exc)), status_code=400)
    client = wiring.backend_client()
    try:
        await client.submit_contact(payload)
    except NetworkError as exc:
        logger.warning("contact submission failed: status=%s", exc.status)
        return layout_response(
            request,
            "Contact",
            _contact_form(values, notice="Your message could not be sent. Please try again later."),
            status_code=502,
        )
    finally:
        await client.aclose()
    return layout_response(
        request, "Contact", _contact_form(notice="Thank you! We will get back to you soon.", kind="success")
    )
