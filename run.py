#!/usr/bin/env python3
"""
IssueDesk - Error Tracking and Issue Triage
Entry point for the Flask application
"""
import os
import socket
from app import create_app

app = create_app()


def is_port_available(port):
    """Check if a port is available"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind(('0.0.0.0', port))
            return True
        except OSError:
            return False


def find_available_port(start_port=5000, max_attempts=10):
    """Find an available port starting from start_port"""
    for i in range(max_attempts):
        port = start_port + i
        if is_port_available(port):
            return port
    return start_port + max_attempts


if __name__ == '__main__':
    is_reloader = os.getenv('WERKZEUG_RUN_MAIN') == 'true'
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    if os.getenv('ISSUEDESK_PORT'):
        # Reloader child process - use the port set by parent
        port = int(os.getenv('ISSUEDESK_PORT'))
    else:
        preferred_port = int(os.getenv('PORT', 5000))

        if is_port_available(preferred_port):
            port = preferred_port
        else:
            port = find_available_port(preferred_port)
            print(f"Port {preferred_port} in use, using port {port} instead")

        os.environ['ISSUEDESK_PORT'] = str(port)

    if not is_reloader:
        print(f"""
    IssueDesk - Error Tracking
      Ingest:  http://localhost:{port}/api/errors
      Admin:   http://localhost:{port}/admin/api/issues
      Health:  http://localhost:{port}/api/health
        """)

    app.run(host='0.0.0.0', port=port, debug=debug)
