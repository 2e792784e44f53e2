import logging
import os
from functools import wraps
from flask import Flask, render_template, request, flash, redirect, g, url_for, jsonify, session
from flask_debugtoolbar import DebugToolbarExtension
from iftar_planner.config import load_config
from iftar_planner.booking import database, notification
from iftar_planner.booking import booking_utils as util
from iftar_planner.booking.booking_service import BookingLifecycle, CalendarSettings
from iftar_planner.booking.error_utils import BookingValidationError, OwnershipError, StoreWriteError
from iftar_planner.booking.ownership import ActorContext, AdminOverride, TOGGLE_MESSAGES, can_modify
from iftar_planner.booking.relay import relay_bp
from iftar_planner.booking.session_identity import get_or_create_session_id

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def create_app():
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config['BOOKING_STORE_FACTORY'] = database.create_store
    if os.environ.get('FLASK_ENV') != 'production':
        app.config["DEBUG_TB_INTERCEPT_REDIRECTS"] = False  # Prevents redirect issues
    app.config['PRAYER_TIMES'] = util.load_prayer_times(app.config.get('PRAYER_TIMES_FILE'))
    app.extensions['notification_relay'] = notification.NotificationRelay(
        app.config.get('NOTIFICATION_RELAY_URL'), [app.config['NOTIFICATION_EMAIL']])
    app.register_blueprint(relay_bp)
    app.add_template_filter(util.format_phone_number, 'phone')
    app.add_template_filter(util.display_date, 'display_date')
    return app

app = create_app()


# Use decorator to create g.db instance within request context window for functions that require it
def instantiate_database(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.db = app.config['BOOKING_STORE_FACTORY'](app.config)
        return f(*args, **kwargs)
    return decorated_function


def calendar_settings() -> CalendarSettings:
    return CalendarSettings(
        start_date=app.config['RAMADAN_START_DATE'],
        total_days=app.config['TOTAL_DAYS'],
        dual_day=app.config['DUAL_DAY'],
        weekday_attendance=app.config['WEEKDAY_ATTENDANCE'],
        weekend_attendance=app.config['WEEKEND_ATTENDANCE'],
        dual_day_attendance=app.config['DUAL_DAY_ATTENDANCE'],
    )


def booking_lifecycle() -> BookingLifecycle:
    return BookingLifecycle(g.db, app.extensions['notification_relay'], calendar_settings())


def current_actor() -> ActorContext:
    return ActorContext(get_or_create_session_id(session), session.get('is_admin', False))


@app.before_request
def identify_session():
    # Session cookie stands in for browser local storage, so keep it for a year
    session.permanent = True
    get_or_create_session_id(session)


@app.context_processor
def inject_contact_details():
    caretaker_name = app.config['CARETAKER_NAME']
    caretaker_phone = app.config['CARETAKER_PHONE']
    contact = None
    if caretaker_phone:
        contact = {
            "name": caretaker_name,
            "phone": caretaker_phone,
            "tel": util.tel_link(caretaker_phone),
            "whatsapp": util.whatsapp_link(caretaker_phone, f"Salaam {caretaker_name}, contacting you regarding the EEIS Iftar Planner."),
        }
    return {"caretaker": contact, "is_admin": session.get('is_admin', False)}


@app.route('/')
def home():
    return redirect(url_for('get_calendar'))


@app.route("/calendar")
@instantiate_database
def get_calendar():
    calendar = booking_lifecycle().load_calendar()
    return render_template('calendar.html', calendar=calendar, actor=current_actor(),
                           prayer_times=app.config['PRAYER_TIMES'], slot_time=util.slot_time)


@app.route("/api/slots")
@instantiate_database
def get_slots():
    calendar = booking_lifecycle().load_calendar()
    return jsonify(calendar.to_dict())


def render_booking_form(slot_id, form_values=None, status=200):
    calendar = booking_lifecycle().load_calendar()
    day, binding = calendar.find_slot(slot_id)
    actor = current_actor()
    booking = binding.booking
    if form_values is None:
        form_values = {
            "name": booking.name if booking else '',
            "phone": booking.phone if booking else '',
            "food_details": booking.food_details if booking else '',
            "accept_terms": booking is not None,
        }
    whatsapp = None
    if booking:
        whatsapp = util.whatsapp_link(booking.phone, f"Salaam {booking.name}, contacting you regarding your booking.")
    return render_template('booking.html', day=day, binding=binding, booking=booking,
                           is_owner=can_modify(actor, booking), form=form_values,
                           tel=util.tel_link(booking.phone) if booking else None,
                           whatsapp=whatsapp), status


@app.route("/booking/<slot_id>", methods=['GET'])
@instantiate_database
def get_booking(slot_id):
    try:
        return render_booking_form(slot_id)
    except BookingValidationError as e:
        flash(e.message, "error")
        return redirect(url_for('get_calendar'))


@app.route("/booking/<slot_id>", methods=['POST'])
@instantiate_database
def confirm_booking(slot_id):
    form_values = {
        "name": request.form.get('name', ''),
        "phone": request.form.get('phone', ''),
        "food_details": request.form.get('food_details', ''),
        "accept_terms": request.form.get('accept_terms') == 'on',
    }
    try:
        form = util.validate_booking_form(form_values['name'], form_values['phone'],
                                          form_values['food_details'], form_values['accept_terms'])
        booking_lifecycle().confirm(slot_id, form, current_actor())
    except BookingValidationError as e:
        flash(e.message, "error")
        try:
            return render_booking_form(slot_id, form_values, 422)
        except BookingValidationError:
            return redirect(url_for('get_calendar'))
    except OwnershipError as e:
        flash(e.message, "error")
        return redirect(url_for('get_booking', slot_id=slot_id))
    except StoreWriteError as e:
        flash(e.message, "error")
        return redirect(url_for('get_calendar'))
    flash("Booking confirmed. JazakAllah khair!", "success")
    return redirect(url_for('get_calendar'))


@app.route("/booking/<slot_id>/delete", methods=['POST'])
@instantiate_database
def cancel_booking(slot_id):
    try:
        booking_lifecycle().cancel(slot_id, current_actor())
    except BookingValidationError as e:
        flash(e.message, "error")
        return redirect(url_for('get_calendar'))
    except OwnershipError as e:
        flash(e.message, "error")
        return redirect(url_for('get_booking', slot_id=slot_id))
    except StoreWriteError as e:
        flash(e.message, "error")
        return redirect(url_for('get_calendar'))
    flash("Booking cancelled.", "success")
    return redirect(url_for('get_calendar'))


@app.route("/admin", methods=['POST'])
def toggle_admin():
    override = AdminOverride(app.config['ADMIN_PASSWORD_HASH'], session.get('is_admin', False))
    result = override.toggle(request.form.get('password'), request.form.get('confirm') == 'yes')
    session['is_admin'] = override.active
    if result in TOGGLE_MESSAGES:
        message, category = TOGGLE_MESSAGES[result]
        flash(message, category)
    logger.info(f"Admin toggle: {result.value}")
    return redirect(url_for('get_calendar'))


@app.errorhandler(404)
def error_handler(error):
    flash("An error occurred.", "error")
    return redirect(url_for('get_calendar'))


if __name__ == '__main__':
    # production
    if os.environ.get('FLASK_ENV') == 'production':
        app.run(debug=False)
    else:
        app.debug = True
        toolbar = DebugToolbarExtension(app)
        app.run(debug=True, port=5003)
