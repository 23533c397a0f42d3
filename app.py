#!/usr/bin/env python3
"""
LMS Admin - Admin API Server (Entry Point)
Dashboard, listing and cascading delete endpoints for platform administrators
"""

import os

from lms_admin.api.app import create_app

app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("ENVIRONMENT", "development").lower() == "development"
    app.run(host="0.0.0.0", port=port, debug=debug)
