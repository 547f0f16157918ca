"""
Bucket merge policy.

The store only supports whole-value writes, so every bucket write is a
read-modify-write of the full record: load, replace only the caller's slot,
store. Nothing locks the sequence; two clients writing their own local
buckets at the same moment can lose one of the two updates (last write
observed by the backend wins).
"""

from typing import Any

from .models import BucketKind, Session, SessionRecord


def merge_bucket(record: SessionRecord, kind: BucketKind, client_id: str, data: Any) -> None:
    """
    Write one bucket into a loaded record.

    Global writes replace the global value wholesale. Local writes replace
    only client_id's entry; other clients' entries are left as loaded.
    """
    if kind is BucketKind.GLOBAL:
        record.bucket_global = data
    else:
        bucket_local = dict(record.bucket_local)
        bucket_local[client_id] = data
        record.bucket_local = bucket_local


def overlay_session(existing: SessionRecord, session: Session, client_id: str) -> SessionRecord:
    """
    Overlay a caller's view on the stored record for a full overwrite.

    The signing secret and origin address come from the stored record; every
    other client's local bucket is carried over untouched.
    """
    record = SessionRecord.from_view(
        session,
        client_id=client_id,
        signing_secret=existing.signing_secret,
        local=existing.bucket_local,
    )
    record.ip_address = existing.ip_address
    return record
