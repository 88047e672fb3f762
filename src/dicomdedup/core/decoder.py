"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/decoder.py
Adapter between pydicom and the classifier.

The classifier needs two things from a parsed file: a string value (the SOP
Class UID) and the exact on-disk bytes of a few top-level elements. pydicom
keeps elements it has not been asked to convert as RawDataElement, whose value
is the undecoded bytes read from the file, so `Dataset.get_item()` gives us
those bytes without touching pixel decoding or transfer-syntax handlers.

The exception is a sequence of undefined length: pydicom parses it eagerly into
a Sequence, so its bytes are recovered from the original buffer as the span
between the value offset and the header of the next top-level element.
"""

import logging
from io import BytesIO
from typing import Optional

import pydicom
from pydicom.dataelem import RawDataElement
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError
from pydicom.tag import Tag
from pydicom.uid import DeflatedExplicitVRLittleEndian

from dicomdedup.core.errors import DecodeFailure, NotDicomError
from dicomdedup.core.interfaces import DatasetDecoder, ParsedDataset

logger = logging.getLogger(__name__)

# Explicit VR element headers use a 4-byte length for these VRs (12-byte header)
LONG_HEADER_VRS = frozenset({"OB", "OD", "OF", "OL", "OV", "OW", "SQ", "SV", "UC", "UN", "UR", "UT", "UV"})

# Sequence Delimitation Item (FFFE,E0DD) with zero length, little endian
SEQUENCE_DELIMITER = b"\xfe\xff\xdd\xe0\x00\x00\x00\x00"


class DicomDataset(ParsedDataset):
    """
    Read-only view over one decoded file.
    Holds the original buffer for the lifetime of a single classify+hash call.
    """

    def __init__(self, dataset: Dataset, buffer: bytes):
        self._dataset = dataset
        self._buffer = buffer
        self._implicit_vr = self._detect_implicit_vr(dataset)
        file_meta = getattr(dataset, "file_meta", None)
        self._deflated = getattr(file_meta, "TransferSyntaxUID", None) == DeflatedExplicitVRLittleEndian

    @staticmethod
    def _detect_implicit_vr(dataset: Dataset) -> bool:
        file_meta = getattr(dataset, "file_meta", None)
        transfer_syntax = getattr(file_meta, "TransferSyntaxUID", None) if file_meta is not None else None
        if transfer_syntax is not None:
            try:
                return bool(transfer_syntax.is_implicit_VR)
            except (AttributeError, ValueError):
                logger.debug(f"Unknown transfer syntax {transfer_syntax}")
        for tag in dataset.keys():
            elem = dataset.get_item(tag)
            if isinstance(elem, RawDataElement):
                return bool(elem.is_implicit_VR)
        return False

    def string_value(self, tag: int) -> Optional[str]:
        elem = self._dataset.get(Tag(tag))
        if elem is None or elem.value is None:
            return None
        value = str(elem.value).strip("\0 ")
        return value or None

    def raw_bytes(self, tag: int) -> Optional[bytes]:
        tag = Tag(tag)
        elem = self._dataset.get_item(tag)
        if elem is None:
            return None

        if isinstance(elem, RawDataElement):
            return elem.value if elem.value else None

        # Zero-length values arrive as converted elements holding None or an empty sequence
        if elem.value is None or elem.is_empty:
            return None

        if getattr(elem, "is_undefined_length", False) and elem.VR == "SQ":
            return self._undefined_length_span(tag, elem.file_tell)

        # Converted elements that still hold bytes (e.g. already accessed OB/OW values)
        if isinstance(elem.value, (bytes, bytearray)):
            return bytes(elem.value) or None

        raise DecodeFailure(f"Element {tag} has no raw byte representation")

    def _undefined_length_span(self, tag, value_offset: Optional[int]) -> Optional[bytes]:
        """
        Bytes of an undefined-length sequence: from its value offset up to the header
        of the next top-level element (or end of buffer), delimiter item included.
        """
        if value_offset is None:
            raise DecodeFailure(f"Element {tag} has no recorded file offset")
        # Offsets of a deflated dataset point into the inflated stream, not the buffer
        if self._deflated:
            raise DecodeFailure(f"Element {tag} has undefined length in a deflated dataset")

        end = len(self._buffer)
        following = sorted(t for t in self._dataset.keys() if t > tag)
        if following:
            end = self._header_offset(following[0])

        if not 0 <= value_offset <= end <= len(self._buffer):
            raise DecodeFailure(f"Element {tag} spans outside the file buffer")
        span = self._buffer[value_offset:end]
        if not span or span == SEQUENCE_DELIMITER:
            return None
        return span

    def _header_offset(self, tag) -> int:
        elem = self._dataset.get_item(tag)
        if isinstance(elem, RawDataElement):
            value_offset, vr = elem.value_tell, elem.VR
        else:
            value_offset, vr = elem.file_tell, elem.VR
        if value_offset is None:
            raise DecodeFailure(f"Element {tag} has no recorded file offset")
        if self._implicit_vr or vr not in LONG_HEADER_VRS:
            return value_offset - 8
        return value_offset - 12


class PydicomDecoder(DatasetDecoder):
    """
    Decodes complete file buffers with pydicom.

    `force=False` keeps pydicom from guessing: a buffer without the Part-10
    preamble and 'DICM' marker is reported as NotDicomError.
    """

    def decode(self, buffer: bytes) -> DicomDataset:
        try:
            dataset = pydicom.dcmread(BytesIO(buffer), force=False)
        except InvalidDicomError as e:
            raise NotDicomError(str(e)) from e
        except Exception as e:
            # pydicom reports truncated or corrupt data with a wide range of exception types
            raise DecodeFailure(f"{type(e).__name__}: {e}") from e
        return DicomDataset(dataset, buffer)
