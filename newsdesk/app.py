"""
Newsdesk development server
===========================

Run with:
    python -m newsdesk.app

Visit:
    http://localhost:5000/health        - Health check
    http://localhost:5000/auth/session  - Current session
"""

from . import create_app
from .core.config import Config, is_production

app = create_app(Config)


if __name__ == '__main__':
    print("\n" + "=" * 60)
    print(Config.APP_NAME)
    print("=" * 60)
    print(f"Health:          http://localhost:{Config.port}/health")
    print(f"Sign in:         POST http://localhost:{Config.port}/auth/login")
    print(f"Dashboard stats: http://localhost:{Config.port}/admin/api/stats")
    print("=" * 60 + "\n")

    app.run(host='0.0.0.0', port=Config.port, debug=not is_production())
