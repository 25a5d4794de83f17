# =============================================================================
# FernID Backend
# app.py - Application Factory & Entry Point
#
# Flask application factory pattern implementation with extension initialization,
# blueprint registration, error handlers, and classifier setup.
# =============================================================================

import os
import logging
from flask import Flask, jsonify
from config import config
from exceptions import ConfigurationError
from extensions import jwt, cors, limiter, is_gateway_configured


def create_app(config_name=None, classifier=None):
    """
    Application factory function.

    Creates and configures the Flask application with all extensions,
    blueprints, and error handlers.

    Args:
        config_name: Configuration environment ('development', 'testing', 'production')
                    Defaults to FLASK_ENV environment variable or 'development'
        classifier: Classifier implementation used by the scan page
                    Defaults to SimulatedClassifier seeded with CLASSIFIER_SEED

    Returns:
        Flask: Configured Flask application instance
    """
    # Determine configuration
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    # Create Flask app instance
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config.get(config_name, config['default']))

    # Setup logging
    setup_logging(app)

    # Initialize extensions
    init_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Classifier used by the scan flow
    init_classifier(app, classifier)

    if not is_gateway_configured():
        app.logger.warning("SUPABASE_URL / SUPABASE_KEY not set - backend calls will fail")

    app.logger.info(f"FernID API started in {config_name} mode")

    return app


def setup_logging(app):
    """
    Configure application logging.

    Sets up logging format, level, and handlers based on environment.
    """
    log_level = logging.DEBUG if app.config['DEBUG'] else logging.INFO

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Set Flask app logger level
    app.logger.setLevel(log_level)

    # The HTTP client logs every backend request at INFO
    logging.getLogger('httpx').setLevel(logging.WARNING)


def init_extensions(app):
    """
    Initialize Flask extensions with the application instance.

    Extensions are created in extensions.py without app context,
    then initialized here with the app instance.
    """
    # Signed session token
    jwt.init_app(app)

    # CORS - Cross Origin Resource Sharing
    cors.init_app(
        app,
        origins=app.config.get('CORS_ORIGINS', ['http://localhost:3000']),
        supports_credentials=app.config.get('CORS_SUPPORTS_CREDENTIALS', True),
        allow_headers=['Content-Type', 'X-CSRF-TOKEN'],
        methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    )

    # Rate limiting
    limiter.init_app(app)

    app.logger.info("Flask extensions initialized")


def register_blueprints(app):
    """
    Register all page blueprints.

    Blueprints organize routes by feature for maintainability.
    Paths match the application pages, so no common prefix is used.
    """
    # Import blueprints
    from routes.auth import auth_bp
    from routes.dashboard import dashboard_bp
    from routes.scan import scan_bp
    from routes.history import history_bp
    from routes.species import species_bp
    from routes.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(scan_bp)
    app.register_blueprint(history_bp)
    app.register_blueprint(species_bp)
    app.register_blueprint(admin_bp)

    # Health check endpoint at root level
    @app.route('/health', methods=['GET'])
    def health_check():
        """
        Health check endpoint for monitoring and load balancers.

        Reports whether the backend connection is configured; no backend
        request is made.
        """
        gateway_ready = is_gateway_configured()
        service = app.config.get('CLASSIFIER_SERVICE')

        return jsonify({
            'status': 'healthy' if gateway_ready else 'degraded',
            'message': 'FernID API is running',
            'version': '1.0.0',
            'backend': 'configured' if gateway_ready else 'not configured',
            'classifier': service.name if service else None
        }), 200 if gateway_ready else 503

    # Root endpoint
    @app.route('/', methods=['GET'])
    def index():
        """Root endpoint with API information."""
        return jsonify({
            'name': 'FernID API',
            'description': 'Fern identification from plant photos',
            'version': '1.0.0',
            'login': '/login',
            'register': '/register',
            'health': '/health'
        })

    app.logger.info("Blueprints registered")


def register_error_handlers(app):
    """
    Register global error handlers for common HTTP errors.

    Provides consistent JSON error responses across the API.
    """

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'success': False,
            'error': 'Bad Request',
            'message': str(error.description) if hasattr(error, 'description') else 'Invalid request'
        }), 400

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({
            'success': False,
            'error': 'Unauthorized',
            'message': 'Authentication required'
        }), 401

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({
            'success': False,
            'error': 'Forbidden',
            'message': 'You do not have permission to access this resource'
        }), 403

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'success': False,
            'error': 'Not Found',
            'message': 'The requested resource was not found'
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'success': False,
            'error': 'Method Not Allowed',
            'message': 'The method is not allowed for this endpoint'
        }), 405

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({
            'success': False,
            'error': 'File Too Large',
            'message': 'The uploaded file exceeds the maximum allowed size'
        }), 413

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        return jsonify({
            'success': False,
            'error': 'Rate Limit Exceeded',
            'message': 'Too many requests. Please try again later.'
        }), 429

    @app.errorhandler(ConfigurationError)
    def configuration_error(error):
        app.logger.critical(f"Configuration error: {error}")
        return jsonify({
            'success': False,
            'error': 'Service is not configured',
            'message': str(error)
        }), 500

    @app.errorhandler(500)
    def internal_server_error(error):
        app.logger.error(f"Internal server error: {error}")
        return jsonify({
            'success': False,
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred. Please try again later.'
        }), 500

    app.logger.info("Error handlers registered")


def init_classifier(app, classifier=None):
    """
    Create the classifier service used by the scan page.

    A classifier passed to the factory takes precedence over the default
    simulated one.
    """
    from services.classifier import ClassifierService, SimulatedClassifier

    if classifier is None:
        classifier = SimulatedClassifier(seed=app.config.get('CLASSIFIER_SEED'))

    # Store in app config for access in routes
    app.config['CLASSIFIER_SERVICE'] = ClassifierService(classifier)

    app.logger.info(f"Classifier ready: {classifier.name}")


# =============================================================================
# Application Entry Point
# =============================================================================

if __name__ == '__main__':
    app = create_app()

    # Get port from environment or default to 5000
    port = int(os.getenv('PORT', 5000))

    # Run the development server
    app.run(
        host='0.0.0.0',
        port=port,
        debug=app.config['DEBUG']
    )
