from flask import Blueprint, current_app as app, flash, jsonify, redirect, render_template, request, session, url_for
from datetime import datetime, timezone

from errors import BusyError, FileTooLargeError, InvoiceSummarizerError, MissingCredentialError, ValidationError
from session_store import SessionRegistry, SessionState
from summarizer.services import confirm_api_key, process_invoice, select_file

routes_bp = Blueprint("routes", __name__, url_prefix="")


def _registry() -> SessionRegistry:
    return app.extensions['session_registry']


def _client_factory():
    return app.extensions['gemini_client_factory']


def current_state(create: bool = True) -> SessionState:
    """
    Session state for this browser, keyed by an id kept in the signed session cookie.
    With create=False an unknown browser gets a blank, unregistered state.
    """
    registry = _registry()
    sid = session.get('sid')
    if not create:
        return (registry.find(sid) if sid else None) or SessionState()
    if not sid:
        sid = registry.new_id()
        session['sid'] = sid
    return registry.get(sid)


def _run_submission(state: SessionState) -> None:
    try:
        process_invoice(state, _client_factory())
    except MissingCredentialError:
        app.logger.info("No API key yet, asking the user for one")
        state.request_credential()
    except (ValidationError, BusyError) as e:
        app.logger.warning(f"Submission rejected: {e}")
        flash(e.message)


@routes_bp.route('/', endpoint='index')
def index():
    state = current_state(create=False)
    return render_template(
        'index.html',
        state=state,
        accept=",".join(f".{ext}" for ext in sorted(app.config['ALLOWED_EXTENSIONS'])),
    )


@routes_bp.route('/process', methods=['POST'], endpoint='process')
def process():
    state = current_state()
    if state.processing:
        flash(BusyError().message)
        return redirect(url_for('routes.index'))

    state.set_input(request.form.get('invoice_text', ''))

    uploaded = request.files.get('file')
    if uploaded and uploaded.filename:
        try:
            select_file(state, uploaded, app.config['MAX_FILE_SIZE'], app.config['ALLOWED_EXTENSIONS'])
        except (FileTooLargeError, ValidationError) as e:
            app.logger.warning(f"File {uploaded.filename} rejected: {e}")
            flash(e.message)
            return redirect(url_for('routes.index'))

    _run_submission(state)
    return redirect(url_for('routes.index'))


@routes_bp.route('/api-key', methods=['POST'], endpoint='api_key')
def api_key():
    state = current_state()
    if request.form.get('action') == 'cancel':
        state.cancel_credential_request()
        return redirect(url_for('routes.index'))

    try:
        retried = confirm_api_key(state, request.form.get('api_key', ''), _client_factory())
    except MissingCredentialError as e:
        flash(e.message)
        state.request_credential()
    except (ValidationError, BusyError) as e:
        app.logger.warning(f"Retry after API key rejected: {e}")
        flash(e.message)
    else:
        app.logger.info(f"API key set, retried pending submission: {retried}")
    return redirect(url_for('routes.index'))


@routes_bp.route('/clear', methods=['POST'], endpoint='clear')
def clear():
    state = current_state(create=False)
    if state.processing:
        flash(BusyError().message)
    else:
        state.clear()
    return redirect(url_for('routes.index'))


@routes_bp.route('/api/session', endpoint='api_session')
def api_session():
    return jsonify(current_state(create=False).snapshot()), 200


@routes_bp.route('/api/health', endpoint='api_health')
def api_health():
    return jsonify({
        'status': 'ok',
        'time': datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + 'Z'
    }), 200


@routes_bp.app_errorhandler(413)
def request_too_large(error):
    flash(FileTooLargeError().message)
    return redirect(url_for('routes.index'))


@routes_bp.app_errorhandler(InvoiceSummarizerError)
def summarizer_error(error):
    app.logger.error(f"Unhandled summarizer error: {error}")
    flash(error.message)
    return redirect(url_for('routes.index'))
