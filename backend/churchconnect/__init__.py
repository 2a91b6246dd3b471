"""ChurchConnect - Application Factory."""
import logging
import os
from flask import Flask, jsonify, send_from_directory
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"]
)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    # Uploaded branding images
    @app.route('/uploads/<path:filename>')
    def uploaded_file(filename):
        return send_from_directory(os.path.abspath(app.config['UPLOAD_FOLDER']), filename)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'ChurchConnect',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from churchconnect.api.auth import auth_bp
    from churchconnect.api.churches import churches_bp
    from churchconnect.api.admin_users import admin_users_bp
    from churchconnect.api.members import members_bp
    from churchconnect.api.visitors import visitors_bp
    from churchconnect.api.events import events_bp
    from churchconnect.api.attendance import attendance_bp
    from churchconnect.api.external_checkin import external_checkin_bp
    from churchconnect.api.kiosk import kiosk_bp
    from churchconnect.api.reports import reports_bp
    from churchconnect.api.exports import exports_bp
    from churchconnect.api.follow_up import follow_up_bp
    from churchconnect.api.communication import communication_bp
    from churchconnect.utils.swagger import generate_swagger_spec, get_swagger_blueprint, SWAGGER_URL

    # Tenant and staff accounts
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(churches_bp, url_prefix='/api/churches')
    app.register_blueprint(admin_users_bp, url_prefix='/api/admin/users')

    # Registry
    app.register_blueprint(members_bp, url_prefix='/api')
    app.register_blueprint(visitors_bp, url_prefix='/api')
    app.register_blueprint(events_bp, url_prefix='/api/events')

    # Check-in channels
    app.register_blueprint(attendance_bp, url_prefix='/api')
    app.register_blueprint(external_checkin_bp, url_prefix='/api')
    app.register_blueprint(kiosk_bp, url_prefix='/api/kiosk')

    # Reporting
    app.register_blueprint(reports_bp, url_prefix='/api')
    app.register_blueprint(exports_bp, url_prefix='/api/export')
    app.register_blueprint(follow_up_bp, url_prefix='/api/follow-up')

    # Providers
    app.register_blueprint(communication_bp, url_prefix='/api/communication-providers')

    # Swagger UI
    @app.route('/api/swagger.json')
    def swagger_spec():
        """Serve Swagger/OpenAPI specification."""
        return jsonify(generate_swagger_spec())

    app.register_blueprint(get_swagger_blueprint(), url_prefix=SWAGGER_URL)

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from sqlalchemy.exc import SQLAlchemyError
    from werkzeug.exceptions import HTTPException
    from churchconnect.utils.errors import APIError
    from churchconnect.utils.helpers import error_response

    @app.errorhandler(APIError)
    def handle_api_error(error):
        return error_response(error.message, error.status_code, **error.payload)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return error_response(e.description or e.name, e.code)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        app.logger.exception('Database error: %s', error)
        return error_response("Internal server error", 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        app.logger.exception('Unhandled error: %s', error)
        return error_response("Internal server error", 500)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Token has expired', 401)

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid token', 401)

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401)

    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        return error_response('Token has been revoked', 401)

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    app.logger.setLevel(getattr(logging, app.config.get('LOG_LEVEL', 'INFO')))

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        app.logger.info('ChurchConnect startup')

def setup_database(app: Flask) -> None:
    """Import models so metadata knows every table."""
    with app.app_context():
        from churchconnect.models import (  # noqa: F401
            Church, ChurchUser, Member, Visitor, Event,
            AttendanceRecord, KioskSession, FollowUpRecord,
            CommunicationProvider, MessageDelivery,
            ReportConfig, ReportRun
        )

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('create-admin')
    def create_admin():
        """Create an admin user for an existing church."""
        from churchconnect.models import Church, ChurchUser, UserRole

        subdomain = click.prompt('Church subdomain')
        church = Church.query.filter_by(subdomain=subdomain).first()
        if not church:
            click.echo(f'No church with subdomain {subdomain}')
            return

        email = click.prompt('Admin email')
        first_name = click.prompt('First name')
        last_name = click.prompt('Last name')
        password = click.prompt('Password', hide_input=True, confirmation_prompt=True)

        admin = ChurchUser(
            church_id=church.id,
            email=email.lower().strip(),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.ADMIN
        )
        admin.set_password(password)
        admin.save()
        click.echo(f'Admin user created: {admin.email}')
