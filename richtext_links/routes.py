"""
Rich-Text Link Validator Flask Routes
=====================================
API endpoints for validating the links of rich-text content.

Endpoints:
- GET  /api/richtext-links/health   - Health check
- POST /api/richtext-links/validate - Validate the links of an HTML value
- POST /api/richtext-links/classify - Classify a single URL

The origin of the live request is used for internal/external
classification. The repository to resolve against is registered with
``init_blueprint``.
"""

import json
import time
from functools import wraps
from typing import Optional

from flask import Blueprint, Flask, current_app, g, jsonify, request

from config_logging import (
    VERSION,
    LinkCheckConfig,
    ProcessingError,
    RichTextLinkError,
    ValidationError,
    get_config,
    get_logger,
)
from .classifier import ReferenceClassifier
from .models import OriginContext, RawReference, ReferenceKind, SourceContext
from .repository import ContentRepository, InMemoryRepository
from .validator import HtmlFieldLinkValidator

logger = get_logger('richtext_links.routes')

rtl_blueprint = Blueprint('richtext_links', __name__)

REPOSITORY_KEY = 'RICHTEXT_LINKS_REPOSITORY'
CONFIG_KEY = 'RICHTEXT_LINKS_CONFIG'


# =============================================================================
# STANDARDIZED ERROR HANDLING DECORATOR
# =============================================================================

def _error_response(code: str, message: str, status: int):
    return jsonify({
        'success': False,
        'error': {
            'code': code,
            'message': message,
            'correlation_id': getattr(g, 'correlation_id', 'unknown')
        }
    }), status


def handle_rtl_errors(f):
    """
    Decorator for standardized API error handling in rich-text link routes.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        start_time = time.time()
        try:
            result = f(*args, **kwargs)

            elapsed = time.time() - start_time
            if elapsed > 5.0:
                logger.warning(f"Slow link validation call: {f.__name__} took {elapsed:.1f}s")

            return result

        except ValidationError as e:
            logger.warning(f"Validation error in {f.__name__}: {e}")
            return _error_response('VALIDATION_ERROR', str(e), 400)
        except RichTextLinkError as e:
            logger.warning(f"{e.code} in {f.__name__}: {e}")
            return _error_response(e.code, e.message, e.status_code)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in {f.__name__}: {e}")
            return _error_response('INVALID_JSON', f'Invalid JSON format: {e}', 400)
        except Exception as e:
            logger.exception(f"Unexpected error in {f.__name__}: {e}")
            return _error_response('INTERNAL_ERROR', 'An unexpected error occurred', 500)

    return decorated


# =============================================================================
# HELPERS
# =============================================================================

def init_blueprint(app: Flask, repository: ContentRepository,
                   config: Optional[LinkCheckConfig] = None):
    """Register the blueprint and the repository it resolves against."""
    app.config[REPOSITORY_KEY] = repository
    app.config[CONFIG_KEY] = config
    app.register_blueprint(rtl_blueprint, url_prefix='/api/richtext-links')


def _repository() -> ContentRepository:
    repository = current_app.config.get(REPOSITORY_KEY)
    if repository is None:
        raise ProcessingError("No content repository registered", stage='setup')
    return repository


def _config() -> LinkCheckConfig:
    return current_app.config.get(CONFIG_KEY) or get_config()


def _request_origin() -> Optional[OriginContext]:
    return OriginContext.from_url(request.host_url)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# =============================================================================
# API ENDPOINTS
# =============================================================================

@rtl_blueprint.before_request
def assign_correlation_id():
    g.correlation_id = logger.new_correlation_id()


@rtl_blueprint.route('/health', methods=['GET'])
def health_check():
    return jsonify({
        'success': True,
        'status': 'healthy',
        'version': VERSION
    })


@rtl_blueprint.route('/validate', methods=['POST'])
@handle_rtl_errors
def validate_links():
    """
    Validate the links of an HTML value.

    Request body:
    {
        "html": "<p><a href=\"~/link.aspx?_id=...\">x</a></p>",
        "item_id": "{...}",
        "field_id": "{...}",
        "language": "en",
        "version": 1
    }
    """
    data = _json_body()
    if 'html' not in data:
        raise ValidationError("Missing 'html'", field='html')
    html = data.get('html') or ''
    if not isinstance(html, str):
        raise ValidationError("'html' must be a string", field='html')

    repository = _repository()
    source = SourceContext(
        item_id=str(data.get('item_id', '')),
        field_id=str(data.get('field_id', '')),
        language=str(data.get('language', 'en')),
        version=data.get('version', 1),
        database=getattr(repository, 'name', 'master'),
        item_path=str(data.get('item_path', '')),
    )

    validator = HtmlFieldLinkValidator(config=_config(), origin=_request_origin())
    result = validator.validate_html(html, source, repository)

    return jsonify({
        'success': True,
        'data': result.to_dict()
    })


@rtl_blueprint.route('/classify', methods=['POST'])
@handle_rtl_errors
def classify_link():
    """
    Classify one URL as internal or external.

    Request body: {"url": "...", "kind": "anchor" | "image"}
    """
    data = _json_body()
    url = data.get('url')
    if not isinstance(url, str) or not url:
        raise ValidationError("Missing 'url'", field='url')
    kind_name = data.get('kind', ReferenceKind.ANCHOR.value)
    try:
        kind = ReferenceKind(kind_name)
    except ValueError:
        raise ValidationError(f"Invalid kind: {kind_name}", field='kind')

    classifier = ReferenceClassifier.from_config(_config(), origin=_request_origin())
    reference = RawReference(kind, url)
    return jsonify({
        'success': True,
        'data': {
            'url': url,
            'classification': classifier.classify(reference).value,
            'external': classifier.is_external_link(url),
            'link_worthy': classifier.is_link_worthy(reference),
        }
    })


def create_app(repository: Optional[ContentRepository] = None,
               config: Optional[LinkCheckConfig] = None) -> Flask:
    """Build a Flask app serving the link validation API."""
    app = Flask(__name__)
    init_blueprint(app, repository if repository is not None else InMemoryRepository(), config)
    return app
