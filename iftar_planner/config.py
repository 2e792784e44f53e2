# Configuration read from the environment. Values can also come from a .env file in the project root.
from datetime import date, timedelta
import os
import secrets

from dotenv import load_dotenv
from werkzeug.security import generate_password_hash

load_dotenv()


def load_config() -> dict:
    """
    Builds the Flask config mapping from environment variables, with development fallbacks.
    """
    production = os.environ.get('FLASK_ENV') == 'production'

    # Must set this in prod, otherwise session ids reset on every restart
    secret_key = os.getenv('SECRET_KEY') or secrets.token_hex(32)  # 256 bit

    admin_password = os.getenv('ADMIN_PASSWORD')
    if not admin_password:  # For dev
        admin_password = 'eeis'

    return {
        'SECRET_KEY': secret_key,
        'PERMANENT_SESSION_LIFETIME': timedelta(days=365),
        'DOMAIN': 'https://iftar.eeis.co.uk' if production else 'http://localhost:5003',
        'DATABASE_URL': os.getenv('DATABASE_URL'),
        'ADMIN_PASSWORD_HASH': generate_password_hash(admin_password),
        'RAMADAN_START_DATE': date.fromisoformat(os.getenv('RAMADAN_START_DATE', '2026-02-18')),
        'TOTAL_DAYS': int(os.getenv('TOTAL_DAYS', '30')),
        'DUAL_DAY': int(os.getenv('DUAL_DAY', '27')),
        'WEEKDAY_ATTENDANCE': int(os.getenv('WEEKDAY_ATTENDANCE', '25')),
        'WEEKEND_ATTENDANCE': int(os.getenv('WEEKEND_ATTENDANCE', '75')),
        'DUAL_DAY_ATTENDANCE': int(os.getenv('DUAL_DAY_ATTENDANCE', '75')),
        'NOTIFICATION_RELAY_URL': os.getenv('NOTIFICATION_RELAY_URL'),
        'NOTIFICATION_EMAIL': os.getenv('NOTIFICATION_EMAIL', 'madrasah@eeis.co.uk'),
        'MAIL_SENDER': os.getenv('MAIL_SENDER', 'EEIS Iftar <madrasah@eeis.co.uk>'),
        'SERVICE_ACCOUNT_FILE': os.getenv('SERVICE_ACCOUNT_FILE'),
        'CARETAKER_NAME': os.getenv('CARETAKER_NAME', 'the Caretaker'),
        'CARETAKER_PHONE': os.getenv('CARETAKER_PHONE', ''),
        'PRAYER_TIMES_FILE': os.getenv('PRAYER_TIMES_FILE'),
    }
