"""WSGI entry point for Gunicorn: gunicorn wsgi:app"""
import os
import sys

sys.path.insert(0, os.path.dirname(__file__))

from retail_pos import create_app

# APP_CONFIG selects the config class, e.g. config.TestConfig
app = create_app(os.getenv('APP_CONFIG', 'config.Config'))

if __name__ == "__main__":
    app.run(port=int(os.getenv('PORT', 5000)))
