# File: backend/run.py
"""Application entry point."""
import atexit
import os
from rollcall import create_app
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Create Flask app
app = create_app(os.getenv('FLASK_ENV', 'development'))
atexit.register(app.extensions['rollcall'].lifecycle.shutdown)

if __name__ == '__main__':
    # Development server
    port = int(os.environ.get('PORT', 5000))
    host = os.environ.get('HOST', '127.0.0.1')
    debug = os.environ.get('FLASK_ENV') == 'development'

    # threaded: each event stream holds a worker while it is open
    app.run(host=host, port=port, debug=debug, threaded=True, use_reloader=False)
