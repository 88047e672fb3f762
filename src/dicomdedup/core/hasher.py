"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Content digest over a classification payload, with a pluggable hash algorithm.

The digest identifies duplicates on its own (no byte-by-byte confirmation
follows), so the algorithm must be collision-resistant.
"""

import hashlib

from dicomdedup.core.interfaces import ContentHasher, HashAlgorithm


# Use the same way to implement and use any other hashing algorithm
class Sha256AlgorithmImpl(HashAlgorithm):
    @staticmethod
    def hash(data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()


class ContentHasherImpl(ContentHasher):
    """
    Hashes the whole payload in one call with the configured algorithm.
    Pure: the same bytes always give the same digest, regardless of path or run.
    """

    def __init__(self, algorithm: HashAlgorithm = Sha256AlgorithmImpl()):
        self.algorithm = algorithm

    def digest(self, data: bytes) -> str:
        if not data:
            raise ValueError("Refusing to hash an empty payload")
        return self.algorithm.hash(data)
