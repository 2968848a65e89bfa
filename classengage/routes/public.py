"""
Public Routes
Contest photo media and health check
"""
import mimetypes

from flask import Blueprint, Response, abort, jsonify

from classengage.storage import get_storage

public_bp = Blueprint('public', __name__)


@public_bp.route('/media/<path:path>')
def media(path):
    """Serve a stored blob (contest photos are WebP)"""
    try:
        data = get_storage().read(path)
    except (FileNotFoundError, ValueError):
        abort(404)
    content_type = mimetypes.guess_type(path)[0] or 'image/webp'
    return Response(data, mimetype=content_type, headers={'Cache-Control': 'public, max-age=86400'})


@public_bp.route('/health')
def health():
    return jsonify({'status': 'ok'})
