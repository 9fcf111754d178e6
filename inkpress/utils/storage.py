import os
import logging
import secrets
import time
from datetime import timedelta

import firebase_admin
from firebase_admin import credentials, storage as fb_storage

from inkpress.errors import UpstreamError

logger = logging.getLogger(__name__)

UPLOAD_URL_EXPIRY = timedelta(seconds=1000)

def init_firebase():
    """Initialise the Firebase app from the service-account environment"""
    if firebase_admin._apps:
        return

    private_key = os.getenv("FIREBASE_PRIVATE_KEY")
    if not private_key:
        logger.warning("No FIREBASE_PRIVATE_KEY found; Google sign-in and uploads are disabled")
        return

    firebase_creds = {
        "type": os.getenv("FIREBASE_TYPE", "service_account"),
        "project_id": os.getenv("FIREBASE_PROJECT_ID"),
        "private_key_id": os.getenv("FIREBASE_PRIVATE_KEY_ID"),
        "private_key": private_key.replace('\\n', '\n'),
        "client_email": os.getenv("FIREBASE_CLIENT_EMAIL"),
        "client_id": os.getenv("FIREBASE_CLIENT_ID"),
        "auth_uri": os.getenv("FIREBASE_AUTH_URI"),
        "token_uri": os.getenv("FIREBASE_TOKEN_URI"),
        "auth_provider_x509_cert_url": os.getenv("FIREBASE_AUTH_PROVIDER_X509_CERT_URL"),
        "client_x509_cert_url": os.getenv("FIREBASE_CLIENT_X509_CERT_URL"),
        "universe_domain": os.getenv("FIREBASE_UNIVERSE_DOMAIN"),
    }
    bucket_name = os.getenv('FIREBASE_STORAGE_BUCKET', 'your-bucket-name.appspot.com')

    cred = credentials.Certificate(firebase_creds)
    firebase_admin.initialize_app(cred, {'storageBucket': bucket_name})
    logger.info("Firebase initialised with bucket %s", bucket_name)

def generate_upload_url() -> str:
    """Short-lived signed URL the client PUTs a JPEG image to"""
    image_name = f"{secrets.token_hex(10)}-{int(time.time() * 1000)}.jpeg"
    try:
        blob = fb_storage.bucket().blob(image_name)
        return blob.generate_signed_url(
            version="v4",
            expiration=UPLOAD_URL_EXPIRY,
            method="PUT",
            content_type="image/jpeg",
        )
    except Exception as e:
        logger.error("Failed to sign upload URL: %s", e)
        raise UpstreamError("Could not create an upload URL") from e
