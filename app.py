from flask import Flask
import logging
from config import Config
from session_store import SessionRegistry
from summarizer.routes import routes_bp
from summarizer.services import default_client_factory

# --- Logging Configuration ---
logging.basicConfig(level=logging.INFO,format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def create_app(overrides=None, client_factory=None) -> Flask:
    """
    Build the Flask app. `overrides` updates the config after Config is loaded;
    `client_factory` replaces the Gemini client builder (used by tests).
    """
    app = Flask(__name__, static_folder=None, template_folder='templates')
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    app.secret_key = app.config['SECRET_KEY']

    # Session state lives in process memory only
    app.extensions['session_registry'] = SessionRegistry(
        max_idle_seconds=app.config['SESSION_IDLE_TIMEOUT'],
        max_sessions=app.config['MAX_SESSIONS'],
    )
    app.extensions['gemini_client_factory'] = client_factory or default_client_factory(app.config)

    app.register_blueprint(routes_bp, url_prefix="")
    app.logger.info(f"Invoice summarizer ready (model {app.config['GEMINI_MODEL']})")
    return app


if __name__ == '__main__':
    create_app().run(debug=True)
