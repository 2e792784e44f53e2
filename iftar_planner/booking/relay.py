"""
Notification relay endpoint.

Accepts {subject, body, to} and sends it as an HTML email from the fixed sender address.
The endpoint does not authenticate callers, so anyone who can reach it can send mail to the given recipients.
"""
import logging
from email.utils import parseaddr

from flask import Blueprint, current_app, jsonify, request
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError

from .booking_utils import sanitize_recipients
from .error_utils import RelayError
from .gmail import GmailIntegration

logger = logging.getLogger(__name__)

relay_bp = Blueprint('relay', __name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _error_response(message):
    logger.error(f"Relay request failed: {message}")
    return jsonify({"error": message}), 400, CORS_HEADERS


def _build_mailer():
    service_account_file = current_app.config.get('SERVICE_ACCOUNT_FILE')
    if not service_account_file:
        raise RelayError("Missing SERVICE_ACCOUNT_FILE environment variable")
    sender = current_app.config['MAIL_SENDER']
    return GmailIntegration(service_account_file, sender, parseaddr(sender)[1])


@relay_bp.route('/functions/send-booking-email', methods=['POST', 'OPTIONS'])
def send_booking_email():
    # CORS preflight
    if request.method == 'OPTIONS':
        return "ok", 200, CORS_HEADERS
    payload = request.get_json(silent=True)
    try:
        if not isinstance(payload, dict):
            raise RelayError("Request body must be a JSON object")
        subject = payload.get('subject')
        body = payload.get('body')
        if not isinstance(subject, str) or not isinstance(body, str):
            raise RelayError("subject and body are required")
        recipients = sanitize_recipients(payload.get('to') or [current_app.config['NOTIFICATION_EMAIL']])
        mailer = _build_mailer()
        # Render plain-text line breaks in the HTML email
        response = mailer.send_email(recipients, subject, body.replace('\n', '<br>'))
    except RelayError as e:
        return _error_response(e.message)
    except HttpError as e:
        return _error_response(str(e))
    except (GoogleAuthError, OSError, ValueError) as e:
        return _error_response(str(e))
    return jsonify(response), 200, CORS_HEADERS
