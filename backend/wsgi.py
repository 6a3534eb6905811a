"""WSGI configuration for production deployment."""
import atexit
import os
from rollcall import create_app

# Create Flask application instance
app = create_app(os.getenv('FLASK_ENV', 'production'))
atexit.register(app.extensions['rollcall'].lifecycle.shutdown)

if __name__ == "__main__":
    app.run(threaded=True)
