"""
WSGI Entry Point for Mind Navigator

This module serves as the entry point for WSGI servers (like Gunicorn)
to run the Flask application in production environments.

- All environment variables must be set BEFORE this module is imported
- Missing production variables cause immediate failure with clear messages
"""

import os
import sys

# Load .env ONLY for local development. In production, environment
# variables must be provided by the platform. Never rely on a committed file.
if os.environ.get('FLASK_ENV', '').lower() != 'production' and os.environ.get('FLASK_CONFIG', '').lower() != 'production':
    from dotenv import load_dotenv

    load_dotenv(override=False)

from mindnav import create_app

# Determine configuration name.
# - Local/dev defaults to development.
# - Production platforms must explicitly set FLASK_ENV/FLASK_CONFIG=production.
config_name = (os.getenv('FLASK_CONFIG') or os.getenv('FLASK_ENV') or 'development').lower()

if config_name == 'production':
    required_vars = {
        'SECRET_KEY': 'Required for session encryption and CSRF protection',
        'DATABASE_URL': 'Required for PostgreSQL connection',
        'STRIPE_WEBHOOK_SECRET': 'Required to verify Stripe webhook signatures',
    }

    missing_vars = [
        f"  - {var_name}: {description}"
        for var_name, description in required_vars.items()
        if not os.getenv(var_name)
    ]
    if missing_vars:
        print(
            "DEPLOYMENT FAILED: Missing required environment variables\n" + "\n".join(missing_vars),
            file=sys.stderr,
        )
        raise RuntimeError('Missing required environment variables in production')

app = create_app(config_name)


if __name__ == '__main__':
    app.run(host=os.environ.get('HOST', '127.0.0.1'), port=int(os.environ.get('PORT', 5000)))
