"""
Firestore client construction for the live-sync event store.

The client is built once by the application lifespan and passed to the store;
credentials come from GOOGLE_APPLICATION_CREDENTIALS as usual.
"""

from google.cloud import firestore

from core.config import FIREBASE_PROJECT_ID


def create_firestore_client(project_id: str = FIREBASE_PROJECT_ID) -> firestore.Client:
    """Create a Firestore client for the configured project."""
    return firestore.Client(project=project_id or None)
