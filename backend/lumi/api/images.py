from flask import Blueprint, jsonify, request, current_app

from lumi.exceptions import ImageError

images = Blueprint('images', __name__)


def _store():
    return current_app.extensions['lumi'].images


@images.errorhandler(ImageError)
def handle_image_error(exc):
    return jsonify({'success': False, 'error': str(exc)}), exc.status_code


@images.route('', methods=['GET'])
def list_images():
    return jsonify({'success': True, 'images': _store().list()})


@images.route('', methods=['POST'])
def upload_image():
    file = request.files.get('image')
    if file is None:
        return jsonify({'success': False, 'error': 'No file uploaded'}), 400
    data = file.read()
    image = _store().add(file.filename or 'upload.jpg', file.mimetype, data)
    current_app.logger.info(f"[api] image uploaded: {image['filename']}")
    return jsonify({'success': True, 'image': image})


@images.route('', methods=['PUT'])
def switch_image_set():
    data = request.get_json(silent=True) or {}
    image_set = data.get('set') or 'default'
    listed = _store().load_set(image_set)
    return jsonify({'success': True, 'count': len(listed), 'images': listed})


@images.route('/<string:image_id>', methods=['DELETE'])
def delete_image(image_id):
    _store().remove(image_id)
    current_app.logger.info(f"[api] image deleted: {image_id}")
    return jsonify({'success': True, 'message': 'Image deleted'})
