"""
GrammarLens Flask API

REST endpoints that forward text to the grammar service and expose the
segmentation and suggestion-application logic to the presentation layer.
"""

import logging
from datetime import datetime, timezone
from flask import Flask, request, jsonify, current_app
from flask_cors import CORS
from jsonschema import validate, ValidationError

from . import __version__
from .core import (
    Issue, ConfigurationError, UpstreamServiceError,
    apply_all_suggestions, build_segments, sort_issues,
)
from .env_loader import get_env_var
from .hf_client import create_corrector
from .languagetool_client import create_languagetool_client

logger = logging.getLogger(__name__)

ISSUE_SCHEMA = {
    "type": "object",
    "properties": {
        "start": {"type": "integer", "minimum": 0},
        "end": {"type": "integer", "minimum": 0},
        "type": {"type": "string"},
        "message": {"type": "string"},
        "suggestion": {"type": "string"},
        "severity": {"type": "string", "enum": ["low", "medium", "high"]}
    },
    "required": ["start", "end"]
}

# text/language are checked for presence separately so that a missing field
# gets the dedicated error message
ANALYZE_REQUEST_SCHEMA = {
    "type": "object",
    "properties": {
        "text": {"type": "string"},
        "language": {"type": "string"}
    }
}

SPANS_REQUEST_SCHEMA = {
    "type": "object",
    "properties": {
        "text": {"type": "string"},
        "issues": {"type": "array", "items": ISSUE_SCHEMA}
    },
    "required": ["text", "issues"]
}

CORRECT_REQUEST_SCHEMA = {
    "type": "object",
    "properties": {
        "text": {"type": "string", "minLength": 1}
    },
    "required": ["text"]
}


def _validation_message(error):
    """Describe a validation error by field and rule, never by the submitted value."""
    if not error.path:
        return error.message
    location = '.'.join(str(part) for part in error.path)
    return f"'{location}' must satisfy {error.validator}={error.validator_value!r}"


class GrammarLensAPI:
    """Flask API wrapper for GrammarLens functionality."""

    def __init__(self, config=None):
        """Initialize API with configuration."""
        self.config = config or {}
        self._client = self.config.get('LANGUAGETOOL_CLIENT')
        self._corrector = self.config.get('HF_CORRECTOR')

    def _get_client(self):
        """Get or create the LanguageTool client."""
        if self._client is None:
            self._client = create_languagetool_client()
            logger.info(f"Flask API initialized - LanguageTool URL: {self._client.base_url}")
        return self._client

    def _get_corrector(self):
        if self._corrector is None:
            self._corrector = create_corrector()
        return self._corrector

    @staticmethod
    def _get_json():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError('Request body must be a JSON object')
        return data

    @staticmethod
    def _parse_issues(data):
        """Validate a {text, issues} body and build Issue records."""
        validate(data, SPANS_REQUEST_SCHEMA)
        try:
            issues = [Issue.from_dict(item) for item in data['issues']]
        except ValueError as e:
            raise ValidationError(str(e))
        return data['text'], issues

    def health_check(self):
        """Health check endpoint with component status."""
        try:
            languagetool_status = self._get_client().test_connection()
            components = {
                'languagetool': 'available' if languagetool_status else 'unavailable',
                'correction_model': 'configured' if self._get_corrector().configured else 'not_configured'
            }

            return jsonify({
                'status': 'healthy' if languagetool_status else 'degraded',
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'version': __version__,
                'components': components
            })

        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return jsonify({
                'status': 'error',
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'error': str(e)
            }), 500

    def analyze(self):
        """Grammar analysis endpoint."""
        try:
            data = self._get_json()
            validate(data, ANALYZE_REQUEST_SCHEMA)

            text = data.get('text')
            language = data.get('language')
            if not text or not language:
                return jsonify({'error': 'Missing text or language'}), 400

            analysis = self._get_client().analyze(text, language)
            return jsonify(analysis.to_dict())

        except ValidationError as e:
            return jsonify({'error': f'Invalid request: {_validation_message(e)}'}), 400
        except UpstreamServiceError as e:
            logger.error(f"LanguageTool failure: {e}")
            return jsonify({'error': 'LanguageTool API failed'}), 500
        except Exception as e:
            logger.exception(f"Error analyzing text: {e}")
            return jsonify({'error': str(e) or 'Unknown error'}), 500

    def segments(self):
        """Split text into renderable segments for the given issues."""
        try:
            text, issues = self._parse_issues(self._get_json())
            segments = build_segments(text, sort_issues(issues))
            return jsonify({'segments': [segment.to_dict() for segment in segments]})

        except ValidationError as e:
            return jsonify({'error': f'Invalid request: {_validation_message(e)}'}), 400
        except Exception as e:
            logger.exception(f"Error building segments: {e}")
            return jsonify({'error': 'Internal server error'}), 500

    def apply(self):
        """Apply every suggestion to the text."""
        try:
            text, issues = self._parse_issues(self._get_json())
            return jsonify({'text': apply_all_suggestions(text, issues)})

        except ValidationError as e:
            return jsonify({'error': f'Invalid request: {_validation_message(e)}'}), 400
        except Exception as e:
            logger.exception(f"Error applying suggestions: {e}")
            return jsonify({'error': 'Internal server error'}), 500

    def correct(self):
        """Whole-text correction with the hosted model."""
        try:
            data = self._get_json()
            if not data.get('text'):
                return jsonify({'error': 'Missing text'}), 400
            validate(data, CORRECT_REQUEST_SCHEMA)

            result = self._get_corrector().correct(data['text'])
            return jsonify(result.to_dict())

        except ValidationError as e:
            return jsonify({'error': f'Invalid request: {_validation_message(e)}'}), 400
        except ConfigurationError as e:
            logger.warning(f"Correction not configured: {e}")
            return jsonify({'error': 'Correction service not configured'}), 503
        except Exception as e:
            logger.exception(f"Error correcting text: {e}")
            return jsonify({'error': str(e) or 'Unknown error'}), 500


def _cors_origins():
    origins = get_env_var('GRAMMARLENS_CORS_ORIGINS', '*')
    return [origin.strip() for origin in origins.split(',') if origin.strip()] or '*'


def create_app(config=None):
    """Create and configure Flask application."""
    app = Flask(__name__)

    CORS(app,
         origins=_cors_origins(),
         methods=['GET', 'POST', 'OPTIONS'],
         allow_headers=['Content-Type'])

    if config:
        app.config.update(config)

    api = GrammarLensAPI(config)
    app.extensions['grammarlens'] = api

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return api.health_check()

    @app.route('/api/analyze', methods=['POST'])
    def analyze():
        """Run a grammar check on {text, language}."""
        return api.analyze()

    @app.route('/api/segments', methods=['POST'])
    def segments():
        return api.segments()

    @app.route('/api/apply', methods=['POST'])
    def apply():
        return api.apply()

    @app.route('/api/correct', methods=['POST'])
    def correct():
        return api.correct()

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        current_app.logger.error(f"Unhandled error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    return app
