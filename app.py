# app.py
from flask import Flask, request, jsonify
import asyncio
import logging
import os
from datetime import datetime, date
from typing import Optional

from automail.channels import send_test_email
from automail.config import MailSettings
from automail.errors import DeliveryError, GenerationError, ValidationError
from automail.models import DispatchRequest, normalize_code
from automail.rendering import format_date
from automail.service import build_dispatcher
from automail.tasks import send_mail_task

logging.basicConfig(
    level=os.getenv("AUTOMAIL_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
LOGGER = logging.getLogger(__name__)

app = Flask(__name__)

DEBUG = os.getenv("FLASK_ENV") != "production"

MAIL_SETTINGS = MailSettings.from_env()
dispatcher = build_dispatcher(MAIL_SETTINGS)


class BadDate(ValueError):
    pass


def parse_date(date_str) -> Optional[date]:
    """
    Parse a DATE (YYYY-MM-DD, or an ISO datetime) from request input.
    Returns None for empty input and raises BadDate when unparsable.
    """
    if not date_str:
        return None
    raw = str(date_str).strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        raise BadDate(f"Invalid date: {raw}") from None


def request_payload() -> dict:
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()


def payload_date(payload: dict) -> date:
    raw = payload.get("date") or payload.get("selected_date") or payload.get("selectedDate")
    return parse_date(raw) or date.today()


def payload_addendum(payload: dict) -> str:
    return payload.get("additional_message") or payload.get("additionalMessage") or ""


# ------------------------------- Index / Catalog -------------------------------
@app.route("/", endpoint="index")
def index():
    today = date.today()
    return jsonify({
        "date": today.isoformat(),
        "date_display": format_date(today),
        "codes": [entry.to_dict() for entry in dispatcher.catalog()],
    })


@app.route("/mail/codes", methods=["GET"], endpoint="available_codes")
def available_codes():
    return jsonify([entry.to_dict() for entry in dispatcher.catalog()])


# ------------------------------- Send / Preview -------------------------------
@app.route("/mail/send", methods=["POST"], endpoint="send_mail")
def send_mail():
    payload = request_payload()
    code = payload.get("code") or ""
    try:
        selected = payload_date(payload)
    except BadDate as exc:
        return jsonify({"success": False, "message": str(exc)}), 400

    mail_request = DispatchRequest(
        code=code,
        date=selected,
        additional_message=payload_addendum(payload),
    )
    result = asyncio.run(dispatcher.dispatch(mail_request))

    if result.success:
        LOGGER.info("Mail sent successfully for code %s to %s", normalize_code(code), result.recipient_email)
        return jsonify(result.to_dict())

    LOGGER.error("Failed to send mail for code %s: %s", code, result.message)
    status = 400 if not normalize_code(code) else 422
    return jsonify(result.to_dict()), status


@app.route("/mail/preview", methods=["POST"], endpoint="preview_mail")
def preview_mail():
    payload = request_payload()
    try:
        selected = payload_date(payload)
        content = asyncio.run(dispatcher.preview(payload.get("code"), selected))
    except (BadDate, ValidationError) as exc:
        return jsonify({"success": False, "message": str(exc)}), 400
    except GenerationError as exc:
        return jsonify({"success": False, "message": str(exc)}), 404

    return jsonify({"success": True, **content.to_dict()})


@app.route("/mail/data", methods=["POST"], endpoint="data_for_code")
def data_for_code():
    payload = request_payload()
    try:
        selected = payload_date(payload)
    except BadDate as exc:
        return jsonify({"success": False, "message": str(exc)}), 400

    response = asyncio.run(dispatcher.fetch_data(payload.get("code"), selected))
    return jsonify({"success": response.success, "data": response.data, "error": response.error})


@app.route("/mail/queue", methods=["POST"], endpoint="queue_mail")
def queue_mail():
    payload = request_payload()
    code = normalize_code(payload.get("code"))
    if not code:
        return jsonify({"queued": False, "message": "Please provide a valid code"}), 400
    try:
        selected = payload_date(payload)
    except BadDate as exc:
        return jsonify({"queued": False, "message": str(exc)}), 400

    async_result = send_mail_task.delay(code, selected.isoformat(), payload_addendum(payload) or None)
    return jsonify({"queued": True, "task_id": async_result.id}), 202


@app.route("/mail/test", methods=["POST"], endpoint="send_test_mail")
def send_test_mail():
    payload = request_payload()
    recipient_email = (payload.get("recipient_email") or payload.get("recipientEmail") or "").strip()
    if not recipient_email:
        return jsonify({"success": False, "message": "recipient_email is required"}), 400
    try:
        send_test_email(recipient_email, MAIL_SETTINGS)
    except DeliveryError as exc:
        return jsonify({"success": False, "message": f"Error sending email: {exc}"}), 502
    return jsonify({"success": True, "message": "Test email sent successfully!"})


# ------------- Run -------------
if __name__ == "__main__":
    app.run(debug=DEBUG)
