"""Flask application factory."""
import logging
from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from app.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize Sentry for error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=app.config.get('SENTRY_TRACES_SAMPLE_RATE', 0.1),
            environment=app.config.get('ENV'),
            release=app.config.get('GIT_COMMIT', 'unknown')
        )

    # Initialize database
    init_db(app)

    if app.config.get('SEED_DEFAULT_PROMOTIONS'):
        from app.database import get_session
        from app.services.promotion_service import seed_default_promotions
        created = seed_default_promotions(get_session())
        if created:
            app.logger.info(f"Seeded {created} default promotions")

    # Error Handlers
    from app.exceptions import BackofficeError

    @app.errorhandler(BackofficeError)
    def handle_backoffice_error(error):
        """Handle custom application exceptions."""
        app.logger.error(f"BackofficeError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException) and error.code and error.code < 500:
            return jsonify({'status': 'error', 'message': error.name}), error.code
        app.logger.error(f"Unhandled Exception: {error} ({request.method} {request.path})", exc_info=error)
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    # Register blueprints
    from app.blueprints.promotions import promotions_bp
    from app.blueprints.sales import sales_bp

    app.register_blueprint(promotions_bp)
    app.register_blueprint(sales_bp)

    # Register CLI commands
    from app.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
