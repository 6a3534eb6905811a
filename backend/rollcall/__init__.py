"""Roll Call attendance service - Application Factory."""
import logging
import os
from datetime import timedelta

from flask import Flask, jsonify
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Attendance core, one per application
    from rollcall.services import build_services
    app.extensions['rollcall'] = build_services(app.config)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'Roll Call',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from rollcall.api.sessions import sessions_bp
    from rollcall.api.attendance import attendance_bp

    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from rollcall.utils.helpers import handle_error
    from rollcall.utils.validators import RollCallError
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return handle_error(e, e.code)

    @app.errorhandler(RollCallError)
    def handle_rollcall_error(e):
        app.logger.error(f"Unhandled service error: {e}")
        return handle_error(e, 500)

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    log_file = app.config.get('LOG_FILE')
    if not app.debug and not app.testing and log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        app.logger.info('Roll Call startup')

def register_commands(app: Flask) -> None:
    """Register CLI commands.

    Session state lives in the serving process, so these commands talk to
    a running server over HTTP.
    """
    import json
    import click
    import requests

    def _base_url(url):
        return (url or app.config.get('PUBLIC_BASE_URL') or 'http://127.0.0.1:5000').rstrip('/')

    @app.cli.command('export-sessions')
    @click.option('--url', default=None, help='Base URL of the running server')
    @click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
                  help='Write the export to this file instead of stdout')
    def export_sessions(url, output):
        """Export every session with its attendees."""
        try:
            response = requests.get(f"{_base_url(url)}/api/sessions/export", timeout=10)
            response.raise_for_status()
        except requests.RequestException as e:
            raise click.ClickException(f'Export failed: {e}')

        payload = json.dumps(response.json()['data'], indent=2, ensure_ascii=False)
        if output:
            with open(output, 'w', encoding='utf-8') as fh:
                fh.write(payload)
            click.echo(f'Exported sessions to {output}')
        else:
            click.echo(payload)

    @app.cli.command('cleanup-sessions')
    @click.option('--url', default=None, help='Base URL of the running server')
    @click.option('--max-age-hours', type=int, default=None,
                  help='Remove sessions older than this (defaults to SESSION_MAX_AGE_HOURS)')
    def cleanup_sessions(url, max_age_hours):
        """Remove stale sessions from a running server."""
        max_age = max_age_hours if max_age_hours is not None else app.config['SESSION_MAX_AGE_HOURS']
        try:
            response = requests.post(
                f"{_base_url(url)}/api/sessions/cleanup",
                json={'max_age_hours': max_age},
                timeout=10
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise click.ClickException(f'Cleanup failed: {e}')

        removed = response.json()['data']['removed']
        click.echo(f'Removed {len(removed)} session(s) older than {timedelta(hours=max_age)}')
