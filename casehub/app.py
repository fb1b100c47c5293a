import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from casehub.config import Config
from casehub.db import init_db
from casehub.routes.auth import auth_bp
from casehub.routes.organisation import org_bp
from casehub.exceptions import ServiceException

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )


def create_app(overrides: dict = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config['LOG_LEVEL'])
    init_db(app)

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(org_bp, url_prefix='/organisation')

    # Global error handler for ServiceException
    @app.errorhandler(ServiceException)
    def handle_service_exception(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        response = {
            'error': True,
            'message': error.description,
            'error_code': error.name.upper().replace(' ', '_'),
            'status_code': error.code
        }
        return jsonify(response), error.code

    @app.errorhandler(Exception)
    def handle_internal_error(error):
        logger.exception("Unhandled error")
        return jsonify({'message': 'Internal server error'}), 500

    return app


if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=6000)
