# voting_app/uploads.py

import os
import time

from flask import current_app
from werkzeug.utils import secure_filename

from voting_app.security.input_validator import ValidationError


def save_candidate_image(file_storage, validator):
    """Store an uploaded photo and return its public URL."""
    if file_storage is None or not file_storage.filename:
        raise ValidationError("All fields are required")
    allowed = current_app.config['ALLOWED_IMAGE_EXTENSIONS']
    if not validator.allowed_image(file_storage.filename, allowed):
        raise ValidationError("Image must be one of: " + ", ".join(sorted(allowed)))

    filename = f"{int(time.time() * 1000)}-{secure_filename(file_storage.filename)}"
    folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(folder, exist_ok=True)
    file_storage.save(os.path.join(folder, filename))
    return f"/uploads/{filename}"


def remove_upload(image_url):
    """Best-effort removal of a stored image whose row failed to save."""
    path = os.path.join(current_app.config['UPLOAD_FOLDER'], os.path.basename(image_url))
    try:
        os.remove(path)
    except OSError as e:
        current_app.logger.warning("Could not remove orphaned upload %s: %s", path, e)
