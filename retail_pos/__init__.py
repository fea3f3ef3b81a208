"""Flask application factory."""
import os

from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException

from retail_pos.database import init_db
from retail_pos.middleware import STATE_EXTENSION, STORE_EXTENSION


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # CSRF protection for state-changing requests (X-CSRFToken header)
    CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'The session has expired. Reload and try again.'}), 400

    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Flask-Mail for low-stock notifications
    from retail_pos.services.email_service import init_mail
    init_mail(app)

    # Prometheus request metrics
    from retail_pos.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Database and application state
    init_db(app)
    _init_state(app)

    from retail_pos.middleware import load_current_user

    @app.before_request
    def before_request_handler():
        """Restore the login session for each request."""
        load_current_user()

    # Error Handlers
    from retail_pos.exceptions import PosError

    @app.errorhandler(PosError)
    def handle_pos_error(error):
        """Handle application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"PosError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"PosError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'status': 'error', 'message': error.name}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception on {request.path}: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from retail_pos.blueprints.auth import auth_bp
    from retail_pos.blueprints.main import main_bp
    from retail_pos.blueprints.users import users_bp
    from retail_pos.blueprints.catalog import catalog_bp
    from retail_pos.blueprints.cart import cart_bp
    from retail_pos.blueprints.sales import sales_bp
    from retail_pos.blueprints.customers import customers_bp
    from retail_pos.blueprints.forecast import forecast_bp
    from retail_pos.blueprints.reports import reports_bp
    from retail_pos.blueprints.settings import settings_bp
    from retail_pos.blueprints.metrics import metrics_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(forecast_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(metrics_bp)

    # CLI commands
    from retail_pos.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app


def _init_state(app):
    """Load the POS state, seed defaults and start the autosave thread."""
    from datetime import timedelta
    from retail_pos.database import get_session
    from retail_pos.services.catalog_service import seed_sample_products
    from retail_pos.services.storage_service import StateStore, AutoSaver, PRODUCTS, USERS
    from retail_pos.state import AppState

    state = AppState()
    store = StateStore()
    app.extensions[STATE_EXTENSION] = state
    app.extensions[STORE_EXTENSION] = store

    with app.app_context():
        lifetime = timedelta(hours=app.config.get('SESSION_LIFETIME_HOURS', 8))
        created_admin = store.load(state, session_lifetime=lifetime)

        to_save = []
        if created_admin:
            to_save.append(USERS)
        if app.config.get('SEED_SAMPLE_PRODUCTS') and seed_sample_products(state.catalog):
            to_save.append(PRODUCTS)
        if to_save:
            store.save(state, to_save)
        get_session().remove()

    if app.config.get('AUTOSAVE_ENABLED'):
        autosaver = AutoSaver(app, store, state, app.config.get('AUTOSAVE_INTERVAL', 30))
        app.extensions['retail_pos.autosaver'] = autosaver
        autosaver.start()

    app.logger.info(f"POS state ready: {len(state.catalog)} products, {len(state.ledger)} sales")
