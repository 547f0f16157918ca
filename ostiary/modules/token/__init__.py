"""
Token Module - Black Box Interface

Purpose: Build and validate signed session tokens
Interface: issue(), validate(), extract_session_id()
Hidden: Claim layout, signing algorithm, constant-time comparison
"""

from .codec import ALGORITHM, TokenCodec

__all__ = ["ALGORITHM", "TokenCodec"]
