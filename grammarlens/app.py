#!/usr/bin/env python3
"""
GrammarLens - Main Application Entry Point

Usage:
    python -m grammarlens.app                                       # Run development server
    waitress-serve --host=0.0.0.0 --port=5006 grammarlens.app:app   # Run with Waitress
"""

import os
import logging

from .api import create_app
from .env_loader import get_env_var, get_env_int, load_environment_once


def configure_logging(log_dir: str = 'logs') -> None:
    """Log to logs/grammarlens.log (UTF-8) and to stderr."""
    os.makedirs(log_dir, exist_ok=True)

    level_name = (get_env_var('GRAMMARLENS_LOG_LEVEL', 'INFO') or 'INFO').upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(os.path.join(log_dir, 'grammarlens.log'), encoding='utf-8'),
            logging.StreamHandler()
        ]
    )


load_environment_once()
configure_logging()

app = create_app()


def main():
    """Run the development server - for production use Waitress."""
    host = get_env_var('HOST', '0.0.0.0')
    port = get_env_int('PORT', 5006)
    print(f"""
    GrammarLens - grammar check API
      Analyze: POST http://localhost:{port}/api/analyze
      Health:  GET  http://localhost:{port}/health

    For production use:
      waitress-serve --host={host} --port={port} grammarlens.app:app
    """)
    app.run(debug=False, host=host, port=port)


if __name__ == '__main__':
    main()
