#!/usr/bin/env python3
"""
Startup script for the daily report backend
"""
import os
from backend.app import create_app

if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config['SETTINGS'].is_development, host='0.0.0.0', port=int(os.getenv('PORT', '5000')))
