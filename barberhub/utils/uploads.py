"""
Storage for uploaded images and proof-of-payment files.

Files land under ``UPLOAD_FOLDER/<subdir>`` and are served from
``/uploads/<subdir>/<name>``. When ``S3_BUCKET_NAME`` is configured the file is
pushed to S3 instead and the public S3 URL is returned.
"""

import os
import random
import time

from flask import current_app
from werkzeug.utils import secure_filename

from .s3_utils import delete_file_from_s3, upload_file_to_s3

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png"}
IMAGE_MIMETYPES = {"image/jpeg", "image/jpg", "image/png"}
PROOF_MIMETYPES = {"image/jpeg", "image/jpg", "image/png", "application/pdf"}

PUBLIC_PREFIX = "/uploads"


class UploadError(ValueError):
    """Raised when an uploaded file is rejected."""


def _extension(filename):
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def is_allowed_image(file):
    return (
        _extension(file.filename) in IMAGE_EXTENSIONS
        and (file.mimetype or "").lower() in IMAGE_MIMETYPES
    )


def is_allowed_proof(file):
    return (file.mimetype or "").lower() in PROOF_MIMETYPES


def file_size(file):
    stream = file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def unique_image_name(fieldname, filename):
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{fieldname}-{suffix}.{_extension(filename)}"


def unique_proof_name(filename):
    return f"{int(time.time() * 1000)}-{secure_filename(filename) or 'proof'}"


def save_upload(file, subdir, name):
    """Store ``file`` as ``subdir/name`` and return the URL clients should use."""
    bucket_name = current_app.config.get("S3_BUCKET_NAME")
    if bucket_name:
        return upload_file_to_s3(
            file,
            f"{subdir}/{name}",
            bucket_name,
            base_url=current_app.config.get("S3_BASE_URL"),
        )

    directory = os.path.join(current_app.config["UPLOAD_FOLDER"], subdir)
    os.makedirs(directory, exist_ok=True)
    file.save(os.path.join(directory, name))
    return f"{PUBLIC_PREFIX}/{subdir}/{name}"


def delete_upload(url):
    if not url:
        return False

    bucket_name = current_app.config.get("S3_BUCKET_NAME")
    if bucket_name and not url.startswith(PUBLIC_PREFIX + "/"):
        return delete_file_from_s3(url, bucket_name)

    relative = url[len(PUBLIC_PREFIX) + 1:] if url.startswith(PUBLIC_PREFIX + "/") else url
    path = os.path.join(current_app.config["UPLOAD_FOLDER"], relative)
    if os.path.isfile(path):
        os.remove(path)
        return True
    return False


def save_images(files, subdir, fieldname, max_count):
    """Validate then store a list of image uploads; all or nothing on validation."""
    files = [f for f in files if f and f.filename]
    if len(files) > max_count:
        raise UploadError(f"At most {max_count} file(s) allowed for {fieldname}.")
    for f in files:
        if not is_allowed_image(f):
            raise UploadError("Only images are allowed (JPEG, PNG).")
    return [save_upload(f, subdir, unique_image_name(fieldname, f.filename)) for f in files]
